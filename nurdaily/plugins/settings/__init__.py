"""Application settings singleton."""
