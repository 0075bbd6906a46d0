"""HTTP API for the script workspace (FastAPI app in app.py)."""
