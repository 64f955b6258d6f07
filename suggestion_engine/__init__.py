"""Suggestion grouping engine for extracted calendar candidates."""
