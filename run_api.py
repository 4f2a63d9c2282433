#!/usr/bin/env python3
"""
Run the Location Risk API.
Configure the store with LOCATION_STORE / LOCATION_DATA_DIR in the environment (or .env).
"""
import os

from dotenv import load_dotenv
import uvicorn

load_dotenv()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(
        "api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=port,
        reload=os.environ.get("RELOAD", "0") == "1",
    )
