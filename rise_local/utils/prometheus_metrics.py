"""
Prometheus 메트릭 수집 유틸리티

Rise Local 백엔드의 주요 메트릭을 수집하고 Prometheus에 노출합니다.

주요 메트릭:
- HTTP 요청 수 및 응답 시간 (Counter, Histogram)
- 쿠폰 코드 발급 결과 (Counter)
- 딜 리딤 / 리딤 취소 (Counter)
- 벤더 코드 검증 결과 (Counter)
- 주문 생성 (Counter)
"""

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
)


# 커스텀 레지스트리 (기본 메트릭 제외)
registry = CollectorRegistry()

# ===========================
# 애플리케이션 정보
# ===========================
app_info = Info(
    "rise_local_app",
    "Rise Local Backend Application Info",
    registry=registry,
)
app_info.info(
    {
        "version": "1.0.0",
        "service": "rise-local-backend",
    }
)

# ===========================
# HTTP 요청 메트릭
# ===========================
http_requests_total = Counter(
    "rise_local_http_requests_total",
    "전체 HTTP 요청 수",
    ["method", "endpoint", "status_code"],
    registry=registry,
)

http_request_duration_seconds = Histogram(
    "rise_local_http_request_duration_seconds",
    "HTTP 요청 처리 시간 (초)",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=registry,
)

http_requests_in_progress = Gauge(
    "rise_local_http_requests_in_progress",
    "현재 처리 중인 HTTP 요청 수",
    ["method", "endpoint"],
    registry=registry,
)

# ===========================
# 딜 리딤 메트릭
# ===========================
code_issuance_total = Counter(
    "rise_local_code_issuance_total",
    "쿠폰 코드 발급 요청 수",
    ["type", "outcome"],  # static/unique, issued/reissued/pool_empty/denied
    registry=registry,
)

redemptions_total = Counter(
    "rise_local_redemptions_total",
    "기록된 리딤 수",
    ["source"],  # web, vendor_verify
    registry=registry,
)

redemption_voids_total = Counter(
    "rise_local_redemption_voids_total",
    "리딤 취소 수",
    ["actor"],  # customer, vendor
    registry=registry,
)

code_verifications_total = Counter(
    "rise_local_code_verifications_total",
    "벤더 코드 검증 시도 수",
    ["outcome"],  # redeemed, invalid_format, invalid, already_used, expired
    registry=registry,
)

# ===========================
# 주문 메트릭
# ===========================
orders_total = Counter(
    "rise_local_orders_total",
    "전체 주문 수",
    ["fulfillment_method"],
    registry=registry,
)

# ===========================
# 에러 메트릭
# ===========================
errors_total = Counter(
    "rise_local_errors_total",
    "애플리케이션 에러 수",
    ["error_type", "severity"],
    registry=registry,
)


# ===========================
# 메트릭 노출 함수
# ===========================
def get_metrics() -> bytes:
    """Prometheus가 수집할 수 있는 형식으로 메트릭 반환"""
    return generate_latest(registry)


def get_content_type() -> str:
    """Prometheus 메트릭 Content-Type 반환"""
    return CONTENT_TYPE_LATEST


# ===========================
# 편의 함수
# ===========================
def record_code_issuance(coupon_type: str, outcome: str):
    """코드 발급 결과 기록"""
    code_issuance_total.labels(type=coupon_type, outcome=outcome).inc()


def record_redemption(source: str):
    """리딤 기록"""
    redemptions_total.labels(source=source).inc()


def record_redemption_void(actor: str):
    """리딤 취소 기록"""
    redemption_voids_total.labels(actor=actor).inc()


def record_code_verification(outcome: str):
    """벤더 코드 검증 결과 기록"""
    code_verifications_total.labels(outcome=outcome).inc()


def record_order(fulfillment_method: str):
    """주문 기록"""
    orders_total.labels(fulfillment_method=fulfillment_method).inc()


def record_error(error_type: str, severity: str = "error"):
    """에러 기록"""
    errors_total.labels(error_type=error_type, severity=severity).inc()
