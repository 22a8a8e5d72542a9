"""vbump: rewrite version declarations, then commit and tag the bump."""
