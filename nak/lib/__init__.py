"""Shared helpers for NaK."""
