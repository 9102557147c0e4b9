#!/usr/bin/env python3
"""Run the inventory workflow service."""
import uvicorn

from src.infrastructure.config import load_config

if __name__ == "__main__":
    config = load_config()
    debug = config.log_level.upper() == "DEBUG"
    uvicorn.run(
        "src.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=debug,
        log_level=config.log_level.lower(),
    )
