"""Blood donor registry and urgent SMS alert service."""
