"""Shortest path precomputation and lookup."""
