"""Symbol scanning, extraction, deduplication and storage."""
