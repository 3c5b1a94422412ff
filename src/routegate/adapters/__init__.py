"""Adapters implementing the core's protocols."""
