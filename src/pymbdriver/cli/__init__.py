"""Command-line tools for pymbdriver."""
