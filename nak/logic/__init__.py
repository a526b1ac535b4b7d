"""Workflow logic for NaK."""
