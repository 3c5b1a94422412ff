"""API middleware and request-identity dependencies."""
