"""Core configuration and logging for NaK."""
