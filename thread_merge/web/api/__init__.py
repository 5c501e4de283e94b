"""FastAPI application exposing thread merges."""
