"""Source store clients."""
