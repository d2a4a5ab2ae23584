"""Badge page services."""
