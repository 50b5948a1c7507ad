"""SOR — SQLite databases over REST."""

__version__ = "0.1.0"
