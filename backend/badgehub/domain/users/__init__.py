"""User record services."""
