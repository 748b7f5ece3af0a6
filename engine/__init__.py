"""Match hosting."""
