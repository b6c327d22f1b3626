#!/usr/bin/env python3
"""
Development server launcher for the PromptDesk API.

This script starts the FastAPI server with appropriate settings for development.
For production, run the app under a proper ASGI server deployment.
"""

import logging

import uvicorn

from promptdesk.config import DEFAULT_CONFIG_PATH

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    logger.info(f"Default config: {DEFAULT_CONFIG_PATH} (override with PROMPTDESK_CONFIG)")
    logger.info("Server will be available at: http://localhost:8000")
    logger.info("API documentation at: http://localhost:8000/docs")

    uvicorn.run(
        "promptdesk.api.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,     # Auto-reload on code changes (development only)
        reload_dirs=["src"],
        log_level="info",
    )
