"""
Redis 연결 풀 관리

비동기 Redis 클라이언트 및 연결 풀을 제공합니다.
리딤 자격/이력 캐싱과 장바구니 저장소에 사용됩니다.
"""

from typing import Optional
from redis import asyncio as aioredis
from redis.asyncio import ConnectionPool

from rise_local.config import get_settings
from rise_local.utils.logging import get_logger

settings = get_settings()
logger = get_logger(__name__)

# 전역 Redis 연결 풀 및 클라이언트
_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """
    Redis 연결 풀 및 클라이언트 초기화

    Returns:
        aioredis.Redis: Redis 클라이언트 인스턴스
    """
    global _redis_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    logger.info("Redis 연결 풀 초기화 중...")

    _redis_pool = ConnectionPool.from_url(
        settings.REDIS_URL,
        max_connections=settings.REDIS_POOL_MAX_CONNECTIONS,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_CONNECT_TIMEOUT,
        decode_responses=True,  # 문자열 자동 디코딩
    )

    # 연결은 첫 명령 실행 시 맺어집니다 (캐시 장애가 요청을 막지 않도록)
    _redis_client = aioredis.Redis(connection_pool=_redis_pool)
    return _redis_client


async def close_redis() -> None:
    """
    Redis 연결 종료

    애플리케이션 종료 시 호출하여 리소스를 정리합니다.
    """
    global _redis_pool, _redis_client

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis 클라이언트 종료")

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis 연결 풀 종료")


async def get_redis() -> aioredis.Redis:
    """
    Redis 클라이언트 가져오기

    FastAPI 의존성 주입용 함수입니다.
    """
    if _redis_client is None:
        await init_redis()

    return _redis_client
