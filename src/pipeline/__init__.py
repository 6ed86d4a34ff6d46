"""Generate-or-reuse pipeline."""
