"""Donor registry helpers: filter resolution and registration intake."""
