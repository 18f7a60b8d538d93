"""Server-synchronized shopping cart client."""

__version__ = "0.1.0"
