"""
유틸리티 패키지

보안, 로깅, Redis, 예외 처리 등의 공통 유틸리티를 제공합니다.
"""

from rise_local.utils.security import (
    JWTManager,
    sanitize_text,
    sanitize_url,
)

from rise_local.utils.logging import (
    setup_logging,
    get_logger,
    audit_logger,
)

from rise_local.utils.redis_client import (
    init_redis,
    close_redis,
    get_redis,
)

from rise_local.utils.exceptions import (
    AppException,
    RedemptionException,
)

__all__ = [
    "JWTManager",
    "sanitize_text",
    "sanitize_url",
    "setup_logging",
    "get_logger",
    "audit_logger",
    "init_redis",
    "close_redis",
    "get_redis",
    "AppException",
    "RedemptionException",
]
