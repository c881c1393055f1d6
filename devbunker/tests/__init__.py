"""DevBunker portal tests."""
