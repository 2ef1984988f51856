"""devchat — team chat client core with code-aware auto-threading."""

__version__ = "0.1.0"
