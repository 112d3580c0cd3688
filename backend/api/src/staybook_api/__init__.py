"""FastAPI REST API for Staybook refunds."""
