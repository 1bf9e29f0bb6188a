"""
Sentry 에러 트래킹 설정

SENTRY_DSN이 설정된 경우에만 활성화됩니다.
요청 본문의 리딤 코드와 토큰은 전송 전에 마스킹합니다.
"""

import logging
from typing import Optional

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.redis import RedisIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

logger = logging.getLogger(__name__)

SENSITIVE_KEYS = [
    "password",
    "token",
    "api_key",
    "secret",
    "code",
    "codes",
    "static_code",
    "staticCode",
]


def init_sentry(
    dsn: Optional[str],
    environment: str = "development",
    release: str = "1.0.0",
    traces_sample_rate: float = 1.0,
) -> bool:
    """
    Sentry SDK 초기화

    Args:
        dsn: Sentry DSN. 없으면 초기화하지 않음
        environment: 환경 이름 (development, staging, production)
        release: 릴리스 버전
        traces_sample_rate: 트랜잭션 샘플링 비율 (0.0 ~ 1.0)

    Returns:
        초기화 여부
    """
    if not dsn:
        logger.info("Sentry DSN이 설정되지 않았습니다. Sentry 모니터링이 비활성화됩니다.")
        return False

    # 환경별 샘플링 비율 자동 조정
    if environment == "production":
        traces_sample_rate = min(traces_sample_rate, 0.1)
    elif environment == "staging":
        traces_sample_rate = min(traces_sample_rate, 0.5)

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        release=release,
        integrations=[
            FastApiIntegration(
                transaction_style="endpoint",
                failed_request_status_codes={*range(500, 600)},  # 5xx 에러만 캡처
            ),
            SqlalchemyIntegration(),
            RedisIntegration(),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR,
            ),
        ],
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        before_send=before_send_filter,
        attach_stacktrace=True,
    )

    logger.info(
        f"Sentry 초기화 완료: environment={environment}, "
        f"traces_sample_rate={traces_sample_rate}"
    )
    return True


def before_send_filter(event, hint):
    """
    이벤트 전송 전 민감 정보 마스킹

    요청 본문, 쿼리 파라미터, Authorization 헤더, extra 데이터를 검사합니다.
    """
    if "request" in event:
        request = event["request"]

        if "data" in request:
            request["data"] = mask_sensitive_data(request["data"], SENSITIVE_KEYS)

        if "headers" in request:
            headers = request["headers"]
            for key in ["Authorization", "authorization", "Cookie"]:
                if key in headers:
                    headers[key] = "[Filtered]"

    if "extra" in event:
        event["extra"] = mask_sensitive_data(event["extra"], SENSITIVE_KEYS)

    return event


def mask_sensitive_data(data, sensitive_keys):
    """
    민감 데이터 마스킹 (재귀적)

    키 이름이 민감 키워드를 포함하면 값을 "[Filtered]"로 바꿉니다.
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            lowered = str(key).lower()
            if any(sensitive.lower() in lowered for sensitive in sensitive_keys):
                masked[key] = "[Filtered]"
            else:
                masked[key] = mask_sensitive_data(value, sensitive_keys)
        return masked

    if isinstance(data, list):
        return [mask_sensitive_data(item, sensitive_keys) for item in data]

    return data
