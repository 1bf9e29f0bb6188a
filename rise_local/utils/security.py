"""
보안 유틸리티 모듈

JWT 토큰 검증, 리딤 코드 생성, 사용자 입력 정제(XSS 방지) 헬퍼를 제공합니다.
토큰 발급은 외부 인증 서비스가 담당하며, 이 서비스는 검증만 수행합니다.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
import re
import secrets

from rise_local.config import get_settings


class JWTManager:
    """
    JWT 토큰 검증 관리 클래스
    """

    @staticmethod
    def create_access_token(
        data: dict,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Access Token 생성 (테스트 및 내부 도구용)

        Example:
            >>> token = JWTManager.create_access_token({"sub": "user_id_123", "role": "buyer"})
        """
        settings = get_settings()
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> dict:
        """
        JWT 토큰 디코딩 및 검증

        Raises:
            ValueError: 토큰이 유효하지 않거나 만료된 경우
        """
        settings = get_settings()
        try:
            return jwt.decode(
                token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
            )
        except JWTError as e:
            raise ValueError(f"Invalid token: {str(e)}")

    @staticmethod
    def verify_token_type(payload: dict, expected_type: str) -> bool:
        """토큰 타입 검증 (access vs refresh)"""
        return payload.get("type") == expected_type


class SecurityUtils:
    """
    기타 보안 유틸리티
    """

    @staticmethod
    def generate_redemption_code(length: int = 6) -> str:
        """
        숫자 리딤 코드 생성 (CSPRNG)

        Example:
            >>> code = SecurityUtils.generate_redemption_code()
            >>> len(code)
            6
        """
        return "".join(str(secrets.randbelow(10)) for _ in range(length))


_SCRIPT_BLOCK = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_HTML_TAG = re.compile(r"<[^>]*>")
_SAFE_URL_PREFIXES = ("http://", "https://", "mailto:", "tel:")


def sanitize_text(text: Optional[str]) -> str:
    """
    텍스트에서 script 블록과 HTML 태그 제거

    Example:
        >>> sanitize_text("<b>Hi</b><script>alert(1)</script>")
        'Hi'
    """
    if not text:
        return ""
    sanitized = _SCRIPT_BLOCK.sub("", text)
    sanitized = _HTML_TAG.sub("", sanitized)
    return sanitized.strip()


def sanitize_url(url: Optional[str]) -> str:
    """
    URL 정제

    http/https/mailto/tel 또는 상대 경로만 허용합니다.
    프로토콜이 없는 도메인 형태는 https:// 를 붙입니다.
    그 외(javascript:, data: 등)는 빈 문자열을 반환합니다.
    """
    if not url:
        return ""

    trimmed = url.strip()
    if not trimmed:
        return ""

    if trimmed.lower().startswith(_SAFE_URL_PREFIXES) or trimmed.startswith("/"):
        return trimmed

    colon_index = trimmed.find(":")
    slash_index = trimmed.find("/")
    if colon_index > 0 and (slash_index == -1 or colon_index < slash_index):
        return ""

    if "." in trimmed and " " not in trimmed:
        return f"https://{trimmed}"

    return ""
