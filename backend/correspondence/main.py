import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from correspondence.api.v1.router import api_router
from correspondence.core.config import get_settings
from correspondence.core.database import engine

settings = get_settings()

# 로깅 설정
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """애플리케이션 라이프사이클"""
    logger = logging.getLogger(__name__)
    logger.info(f"Starting {settings.app_name} ({settings.app_env})")
    yield
    # 종료 시
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description="Ministry correspondence routing API",
    lifespan=lifespan,
)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API 라우터 등록
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict:
    """헬스 체크"""
    return {"status": "ok"}
