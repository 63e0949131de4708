"""Restaurant catalogue backend: a Flask JSON API over SQLite with image uploads."""

__version__ = "0.1.0"