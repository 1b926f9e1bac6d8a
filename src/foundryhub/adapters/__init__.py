"""Adapters for the container engine and the data directory."""
