"""Application layer: configuration, logging, HTTP API."""
