"""Preprocessor defines and conditional block analysis."""
