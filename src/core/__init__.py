"""Core models and key derivation."""
