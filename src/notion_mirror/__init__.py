"""One-way mirror of a Notion workspace into a local markdown vault."""

__version__ = "0.1.0"
