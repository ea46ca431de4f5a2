"""Archive Bluesky threads to Markdown."""

__version__ = "0.1.0"
