"""Artifact materializers."""
