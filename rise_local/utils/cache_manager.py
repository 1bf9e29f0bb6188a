"""
Redis 캐싱 전략 관리자

리딤 자격(can-redeem) 결과와 리딤 이력 조회 결과를 캐싱합니다.
DB가 항상 기준 데이터이며, 캐시 장애는 캐시 미스로 처리합니다.
"""

import json
import logging
from typing import Any, Optional
from fastapi import Depends
from redis import asyncio as aioredis

from rise_local.utils.redis_client import get_redis

logger = logging.getLogger(__name__)


class CacheKeyBuilder:
    """
    캐시 키 생성 유틸리티

    일관성 있고 충돌 없는 캐시 키를 생성합니다.
    """

    @staticmethod
    def deal_eligibility(user_id: str, deal_id: str) -> str:
        """사용자별 딜 리딤 자격 캐시 키"""
        return f"redemption:eligibility:user:{user_id}:deal:{deal_id}"

    @staticmethod
    def deal_eligibility_pattern(deal_id: str) -> str:
        """딜 하나에 대한 모든 사용자의 자격 캐시 키 패턴"""
        return f"redemption:eligibility:user:*:deal:{deal_id}"

    @staticmethod
    def redemption_history(user_id: str, limit: int = 20) -> str:
        """사용자 리딤 이력 캐시 키"""
        return f"redemption:history:user:{user_id}:limit={limit}"

    @staticmethod
    def user_cart(user_id: str) -> str:
        """사용자 장바구니 키"""
        return f"cart:user:{user_id}"


class CacheManager:
    """
    통합 캐시 관리자

    Redis 캐싱 작업을 추상화하고 일관성 있는 인터페이스 제공
    """

    # 기본 TTL 설정 (초)
    DEFAULT_TTL = 300  # 5분
    SHORT_TTL = 60  # 1분

    def __init__(self, redis_client: aioredis.Redis):
        self.redis = redis_client

    async def get(self, key: str) -> Optional[Any]:
        """
        캐시에서 값 조회

        Returns:
            캐시된 값 (없거나 조회 실패 시 None)
        """
        try:
            value = await self.redis.get(key)
            if value:
                logger.debug(f"캐시 HIT: {key}")
                return json.loads(value)
            logger.debug(f"캐시 MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"캐시 조회 실패: {key} - {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        캐시에 값 저장

        Args:
            key: 캐시 키
            value: 저장할 값 (JSON 직렬화)
            ttl: 만료 시간 (초), None이면 기본값 사용

        Returns:
            성공 여부
        """
        if ttl is None:
            ttl = self.DEFAULT_TTL

        try:
            serialized = json.dumps(value, default=str)
            result = await self.redis.set(key, serialized, ex=ttl)
            return bool(result)
        except Exception as e:
            logger.error(f"캐시 저장 실패: {key} - {e}")
            return False

    async def delete(self, key: str) -> bool:
        """캐시에서 값 삭제"""
        try:
            result = await self.redis.delete(key)
            logger.debug(f"캐시 DELETE: {key}")
            return bool(result)
        except Exception as e:
            logger.error(f"캐시 삭제 실패: {key} - {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        패턴과 일치하는 모든 키 삭제

        Args:
            pattern: 키 패턴 (예: "redemption:history:user:123:*")

        Returns:
            삭제된 키 개수
        """
        try:
            keys = []
            async for key in self.redis.scan_iter(match=pattern):
                keys.append(key)

            if keys:
                deleted = await self.redis.delete(*keys)
                logger.info(f"캐시 패턴 삭제: {pattern} - {deleted}개 키 삭제")
                return deleted
            return 0
        except Exception as e:
            logger.error(f"캐시 패턴 삭제 실패: {pattern} - {e}")
            return 0

    async def invalidate_redemption_cache(self, user_id: str, deal_id: Optional[str] = None):
        """
        사용자의 리딤 자격/이력 캐시 무효화

        Args:
            user_id: 사용자 ID
            deal_id: 특정 딜 ID (None이면 해당 사용자의 모든 딜 자격 캐시)
        """
        if deal_id:
            await self.delete(CacheKeyBuilder.deal_eligibility(user_id, deal_id))
        else:
            await self.delete_pattern(f"redemption:eligibility:user:{user_id}:*")

        await self.delete_pattern(f"redemption:history:user:{user_id}:*")
        logger.info(f"리딤 캐시 무효화 완료: user_id={user_id}, deal_id={deal_id}")

    async def invalidate_deal_eligibility(self, deal_id: str) -> int:
        """딜 상태/조건 변경 시 모든 사용자의 자격 캐시 무효화"""
        deleted = await self.delete_pattern(CacheKeyBuilder.deal_eligibility_pattern(deal_id))
        logger.info(f"딜 자격 캐시 무효화: deal_id={deal_id}, keys={deleted}")
        return deleted


async def get_cache_manager(
    redis: aioredis.Redis = Depends(get_redis),
) -> CacheManager:
    """CacheManager 의존성"""
    return CacheManager(redis)
