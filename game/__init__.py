"""Game rules, board model and agents."""
