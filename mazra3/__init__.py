"""mazra3 - rule-based Arabic agricultural advisory matcher."""

__version__ = "0.1.0"
