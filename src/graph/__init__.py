"""Entity store backends."""
