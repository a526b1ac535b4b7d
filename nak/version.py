"""Version information for NaK."""

__version__ = "1.6.0"
