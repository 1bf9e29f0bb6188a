"""
Rise Local FastAPI 메인 애플리케이션

지역 딜 마켓플레이스의 백엔드 API 서버입니다.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from rise_local.config import get_settings
from rise_local.models.base import close_db, engine
from rise_local.utils.exceptions import AppException, RedemptionException
from rise_local.utils.logging import setup_logging, get_logger
from rise_local.utils.prometheus_metrics import record_error
from rise_local.utils.redis_client import close_redis, get_redis
from rise_local.utils.sentry_config import init_sentry
from rise_local.middleware.prometheus import PrometheusMiddleware

# API 라우터
from rise_local.api.catalog import router as catalog_router
from rise_local.api.deals import router as deals_router
from rise_local.api.redemptions import router as redemptions_router
from rise_local.api.vendor import router as vendor_router
from rise_local.api.cart import router as cart_router
from rise_local.api.orders import router as orders_router
from rise_local.api.messages import router as messages_router
from rise_local.api.users import router as users_router
from rise_local.api.metrics import router as metrics_router

settings = get_settings()

# 로깅 설정
setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT, settings.LOG_FILE)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 라이프사이클 관리

    시작 시: Sentry 초기화
    종료 시: 데이터베이스 엔진, Redis 연결 풀 정리
    """
    logger.info("Rise Local 서버 시작 중...")

    if not settings.is_testing:
        init_sentry(
            dsn=settings.SENTRY_DSN,
            environment=settings.SENTRY_ENVIRONMENT or settings.ENV,
            release=settings.APP_VERSION,
        )

    logger.info("서버 시작 완료")
    yield

    logger.info("Rise Local 서버 종료 중...")
    await close_redis()
    await close_db()
    logger.info("서버 종료 완료")


app = FastAPI(
    title="Rise Local API",
    description="""
## Rise Local

지역 소상공인 딜 / 상품 마켓플레이스 백엔드입니다.

### 주요 기능

- **딜 리딤**: 리딤 가능 여부 확인, 쿠폰 코드 발급 (STATIC / UNIQUE), 리딤 기록, 취소
- **Rise Local Pass**: 멤버 전용 딜 잠금
- **벤더 대시보드**: 딜 관리, 코드 풀 보충, 고객 코드 확인
- **장바구니 & 주문**: 서버 측 장바구니, 결제 전 주문 생성
- **메시지**: 소비자-벤더 1:1 대화
    """,
    version=settings.APP_VERSION,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


# CORS 미들웨어 설정 (프론트엔드 연동)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.PROMETHEUS_ENABLED:
    app.add_middleware(PrometheusMiddleware)


# 전역 예외 핸들러
@app.exception_handler(RedemptionException)
async def redemption_exception_handler(request: Request, exc: RedemptionException):
    """리딤 흐름 예외 처리 ({"success": false, "error": ...})"""
    logger.info(
        f"RedemptionException: {exc.error_code}",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    """애플리케이션 정의 예외 처리"""
    logger.warning(
        f"AppException: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """모든 예외를 캐치하는 최종 핸들러"""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )
    record_error(type(exc).__name__, "critical")
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "Something went wrong on our side. Please try again shortly.",
        },
    )


# 헬스 체크 엔드포인트
@app.get("/", tags=["Health"])
async def root():
    """루트 엔드포인트"""
    return {
        "service": settings.APP_NAME,
        "status": "running",
        "version": settings.APP_VERSION,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """헬스 체크 엔드포인트 (로드 밸런서용)"""
    database = "connected"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"데이터베이스 헬스 체크 실패: {e}")
        database = "disconnected"

    redis_status = "connected"
    try:
        redis = await get_redis()
        await redis.ping()
    except Exception as e:
        logger.error(f"Redis 헬스 체크 실패: {e}")
        redis_status = "disconnected"

    healthy = database == "connected"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "database": database,
            "redis": redis_status,
        },
    )


# API 라우터 등록
app.include_router(catalog_router)
app.include_router(deals_router)
app.include_router(redemptions_router)
app.include_router(vendor_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(messages_router)
app.include_router(users_router)
app.include_router(metrics_router)


if __name__ == "__main__":
    # 개발 서버 실행
    uvicorn.run(
        "rise_local.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level="info",
    )
