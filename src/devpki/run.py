#!/usr/bin/env python
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv
from loguru import logger

if __name__ == "__main__":
    logger.info("Development PKI Service, start running!")
    load_dotenv(Path.cwd() / ".env")
    logger.info(f"当前应用环境：{os.getenv('APP_ENV')}")
    log_level = os.getenv("DEVPKI_LOG_LEVEL", "INFO").lower()

    uvicorn.run(
        "src.devpki.main:app",
        host=os.getenv("DEVPKI_HOST", "127.0.0.1"),
        port=int(os.getenv("DEVPKI_PORT", "8000")),
        reload=True,
        log_level=log_level,
    )
