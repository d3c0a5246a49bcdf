"""FastAPI admin and entry endpoints."""
