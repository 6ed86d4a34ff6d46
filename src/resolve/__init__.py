"""Query-time link resolution."""
