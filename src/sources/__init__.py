"""Local byte-source resolution."""
