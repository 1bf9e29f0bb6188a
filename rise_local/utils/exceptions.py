"""
커스텀 예외 클래스 정의

애플리케이션 전역에서 사용하는 예외 클래스를 정의합니다.
"""

from typing import Optional, Any
from fastapi import status


class AppException(Exception):
    """
    애플리케이션 기본 예외 클래스

    모든 커스텀 예외는 이 클래스를 상속받습니다.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "app_error",
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(AppException):
    """
    입력 검증 실패 예외

    사용자 입력이 유효하지 않을 때 발생합니다.
    """

    def __init__(
        self,
        message: str = "Invalid input.",
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        if field:
            details = details or {}
            details["field"] = field

        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="validation_error",
            details=details,
        )


class NotFoundException(AppException):
    """
    리소스를 찾을 수 없을 때 발생하는 예외
    """

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"{resource} not found"

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found",
            details={"resource": resource, "resource_id": resource_id},
        )


class ForbiddenException(AppException):
    """
    권한 부족 예외 (403 Forbidden)

    예: 다른 사용자의 리딤 내역을 취소하려는 경우
    """

    def __init__(self, message: str = "You do not have access to this resource."):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="forbidden",
        )


class ConflictException(AppException):
    """
    리소스 충돌 예외 (409 Conflict)

    예: 허용되지 않은 딜 상태 전이
    """

    def __init__(
        self,
        message: str = "The request conflicts with the current state.",
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="conflict",
            details=details,
        )


class BusinessRuleException(AppException):
    """
    비즈니스 규칙 위반 예외

    예: 재고 부족, 쿠폰 타입이 없는 딜에 코드 요청 등
    """

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        if rule:
            details = details or {}
            details["rule"] = rule

        super().__init__(
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="business_rule_violation",
            details=details,
        )


# 리딤 워크플로 전용 예외 클래스


class RedemptionException(AppException):
    """
    딜 리딤 흐름의 예외 기본 클래스

    클라이언트에는 `{"success": false, "error": ...}` 형태로 전달됩니다.
    """

    def to_payload(self) -> dict[str, Any]:
        """리딤 API 응답 본문으로 변환"""
        payload = {
            "success": False,
            "error": self.message,
            "code": self.error_code,
        }
        payload.update(self.details)
        return payload


class NotEligibleException(RedemptionException):
    """멤버십 또는 리딤 빈도 조건 불충족"""

    def __init__(self, reason: str, requires_pass: bool = False):
        details = {"requiresPass": True} if requires_pass else None
        super().__init__(
            message=reason,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="not_eligible",
            details=details,
        )


class PoolEmptyException(RedemptionException):
    """UNIQUE 코드 풀 소진 (벤더가 코드를 보충하면 복구 가능)"""

    def __init__(self, deal_id: Optional[str] = None):
        super().__init__(
            message="All codes for this deal have been claimed. Please check back later.",
            status_code=status.HTTP_409_CONFLICT,
            error_code="pool_empty",
            details={"poolEmpty": True},
        )
        self.deal_id = deal_id


class CodeExpiredException(RedemptionException):
    """발급된 코드의 유효 시간 경과"""

    def __init__(self):
        super().__init__(
            message="This code has expired. Ask the customer to claim a new one.",
            status_code=status.HTTP_410_GONE,
            error_code="code_expired",
        )


class CodeAlreadyUsedException(RedemptionException):
    """이미 사용 처리된 코드"""

    def __init__(self):
        super().__init__(
            message="This code has already been redeemed.",
            status_code=status.HTTP_409_CONFLICT,
            error_code="code_already_used",
        )


class InvalidCodeFormatException(RedemptionException):
    """코드 형식 오류 (숫자 6자리)"""

    def __init__(self):
        super().__init__(
            message="Please enter a 6-digit code.",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="invalid_code_format",
        )


class InvalidCodeException(RedemptionException):
    """해당 딜에 발급된 적 없는 코드"""

    def __init__(self):
        super().__init__(
            message="Invalid code for this deal.",
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="invalid_code",
        )


class UndoWindowExpiredException(RedemptionException):
    """리딤 취소 가능 시간 경과"""

    def __init__(self, window_minutes: int):
        super().__init__(
            message=f"Redemptions can only be undone within {window_minutes} minutes.",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="undo_window_expired",
        )


class RedemptionAlreadyVoidedException(RedemptionException):
    """이미 취소된 리딤"""

    def __init__(self):
        super().__init__(
            message="This redemption has already been voided.",
            status_code=status.HTTP_409_CONFLICT,
            error_code="already_voided",
        )


class DealNotFoundException(NotFoundException):
    """딜을 찾을 수 없을 때"""

    def __init__(self, deal_id: str):
        super().__init__(resource="Deal", resource_id=deal_id)


class RedemptionNotFoundException(NotFoundException):
    """리딤 내역을 찾을 수 없을 때"""

    def __init__(self, redemption_id: str):
        super().__init__(resource="Redemption", resource_id=redemption_id)


class OutOfStockException(BusinessRuleException):
    """재고 부족 예외"""

    def __init__(self, product_name: str, available: int = 0):
        super().__init__(
            message=f"Not enough stock for '{product_name}'.",
            rule="stock_available",
            details={"product": product_name, "available_stock": available},
        )
