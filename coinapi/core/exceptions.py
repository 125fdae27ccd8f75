from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class BaseAPIException(HTTPException):
    """Base exception for API errors"""
    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "message": message,
                    "details": self.details
                }
            },
            headers=headers,
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message


class AuthenticationError(BaseAPIException):
    """Authentication related errors"""
    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_001",
            message=message,
            details=details,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ValidationError(BaseAPIException):
    """Validation errors"""
    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_code="VALIDATION_001",
            message=message,
            details=details
        )


class NotFoundError(BaseAPIException):
    """Resource not found errors"""
    def __init__(self, message: str = "Resource not found", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND_001",
            message=message,
            details=details
        )


class InternalServerError(BaseAPIException):
    """Internal server errors"""
    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details
        )


class InsufficientBalanceError(BaseAPIException):
    """잔액 부족 - 사용자가 충전 후 재시도할 수 있는 오류"""
    def __init__(self, message: str = "Insufficient balance", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="INSUFFICIENT_BALANCE",
            message=message,
            details=details
        )


class GiftNotFoundError(BaseAPIException):
    """선물이 없거나 비활성 상태"""
    def __init__(self, gift_id: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="GIFT_NOT_FOUND",
            message="Gift not found or inactive",
            details={"gift_id": gift_id}
        )


class SelfGiftError(BaseAPIException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="SELF_GIFT",
            message="You cannot send a gift to yourself",
        )


class ReceiverNotCreatorError(BaseAPIException):
    """수신자가 승인된 크리에이터가 아님"""
    def __init__(self, receiver_id: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="RECEIVER_NOT_CREATOR",
            message="Receiver is not an approved creator",
            details={"receiver_id": receiver_id}
        )


class DiscountCodeError(BaseAPIException):
    """구매 생성 시 할인 코드 검증 실패 - error_code는 DiscountErrorCode 값"""
    def __init__(self, error_code: str, message: str, details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            message=message,
            details=details
        )


class PaymentGatewayError(BaseAPIException):
    """결제 게이트웨이 호출 실패"""
    def __init__(self, message: str = "Payment gateway error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code="PAYMENT_GATEWAY_001",
            message=message,
            details=details
        )


class WebhookSignatureError(BaseAPIException):
    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="WEBHOOK_SIGNATURE",
            message=message,
        )
