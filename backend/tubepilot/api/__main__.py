"""API server entry point for python -m tubepilot.api"""
import logging

import uvicorn
from tubepilot.config import settings

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(
        "tubepilot.api.app:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )
