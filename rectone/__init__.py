"""rect.one tool directory: query engine over a database or fallback JSON data."""

__version__ = "1.0.0"
