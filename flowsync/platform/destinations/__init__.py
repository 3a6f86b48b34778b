"""Target store clients."""
