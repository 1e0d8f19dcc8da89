"""Credential checks and local sessions layered on the hosted database."""
