"""Badge collections kept under each user record."""
