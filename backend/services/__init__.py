"""Application services built on the oracle clients."""
