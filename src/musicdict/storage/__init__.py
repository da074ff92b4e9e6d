"""Entry repositories."""
