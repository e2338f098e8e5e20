"""
Main entry point for the SetterFlow dashboard API.
Usage: python main.py
"""
import os
import sys

import uvicorn
from loguru import logger


def main():
    """Run the API server."""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 8000))
    logger.info(f"Starting SetterFlow dashboard at http://{host}:{port}")

    uvicorn.run(
        "admin_backend.main:app",
        host=host,
        port=port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)
