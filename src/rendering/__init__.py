"""Page rasterizers."""
