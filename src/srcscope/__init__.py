"""srcscope - source navigation and conditional-compilation analysis."""
