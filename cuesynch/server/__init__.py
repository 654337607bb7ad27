"""HTTP API server for CueSynch (FastAPI)."""
