"""Contact messages and the admin inbox."""
