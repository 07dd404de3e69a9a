"""Clients for third-party recipe services."""
