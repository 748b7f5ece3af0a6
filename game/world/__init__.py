"""Board geometry and the host-side fruit board."""
