"""Persistence models, data access and the HTTP API."""
