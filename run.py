#!/usr/bin/env python3
"""Run script for Resolution AI."""

import logging
import os

import uvicorn
from dotenv import load_dotenv

if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "resolutionai.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
