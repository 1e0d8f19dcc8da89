"""Admin profiles and their cache."""
