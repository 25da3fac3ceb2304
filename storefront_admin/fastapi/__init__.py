"""FastAPI integration: auth dependencies and routes."""
