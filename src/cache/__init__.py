"""Durable thumbnail cache."""
