"""Block Canvas: text-to-block-diagram generation and editing."""

__version__ = "1.0.0"
