"""
Entry point for serving the ask API.

Usage:
    uv run python scripts/run_api.py
    PORT=9000 uv run python scripts/run_api.py
"""
import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    uvicorn.run(
        "portfolio_ask.api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
