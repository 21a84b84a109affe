"""
FastAPI 应用入口点。
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from src.devpki.ca.router import router as ca_router
from src.devpki.config import config
from src.devpki.log import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.log_level)
    logger.info(f"config: {config.model_dump_json(indent=4)}")
    yield
    logger.info("应用关闭")


app = FastAPI(title="Development PKI Service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 包含证书签发服务的路由
app.include_router(ca_router, prefix="/v1")
