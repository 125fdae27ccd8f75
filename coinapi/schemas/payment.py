from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from coinapi.models.payment import PurchaseStatusEnum
from coinapi.schemas.pagination import PaginationMeta


class CoinPackageResponse(BaseModel):
    """코인 패키지"""

    id: int = Field(..., description="패키지 ID")
    name: str = Field(..., description="패키지명")
    description: Optional[str] = Field(None, description="설명")
    coins: int = Field(..., description="기본 코인")
    bonus_coins: int = Field(..., description="패키지 보너스 코인")
    total_coins: int = Field(..., description="기본 + 보너스 코인")
    price: int = Field(..., description="가격 (최소 통화 단위)")
    currency: str = Field(..., description="통화")
    gateway_product_id: Optional[str] = Field(None, description="게이트웨이 상품 ID")
    is_active: bool = Field(..., description="판매 여부")
    sort_order: int = Field(..., description="정렬 순서")

    class Config:
        from_attributes = True


class CoinPackageListResponse(BaseModel):
    packages: List[CoinPackageResponse] = Field(..., description="패키지 목록")
    total_count: int = Field(..., description="총 패키지 수")


class PurchaseRequest(BaseModel):
    """코인 구매 요청"""

    package_id: int = Field(..., gt=0, description="구매할 패키지 ID")
    discount_code: Optional[str] = Field(
        None, min_length=1, max_length=50, description="할인 코드"
    )


class CheckoutSessionResponse(BaseModel):
    """체크아웃 세션 생성 응답"""

    purchase_id: int = Field(..., description="구매 ID")
    order_id: str = Field(..., description="주문 ID")
    session_id: str = Field(..., description="게이트웨이 세션 ID")
    checkout_url: str = Field(..., description="결제 페이지 URL")
    total_coins: int = Field(..., description="결제 완료 시 지급될 코인")
    amount: int = Field(..., description="결제 금액 (최소 통화 단위)")
    currency: str = Field(..., description="통화")


class CoinPurchaseResponse(BaseModel):
    """코인 구매 기록"""

    id: int
    user_id: int
    package_id: int
    coins: int
    bonus_coins: int
    total_coins: int
    amount: int
    currency: str
    order_id: str
    checkout_session_id: Optional[str] = None
    transaction_id: Optional[str] = None
    status: PurchaseStatusEnum
    payment_gateway: str
    failure_reason: Optional[str] = None
    discount_code_id: Optional[int] = None
    discount_bonus_coins: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchaseHistoryResponse(BaseModel):
    """구매 내역 응답 (최신순)"""

    purchases: List[CoinPurchaseResponse] = Field(..., description="구매 내역")
    pagination: PaginationMeta


class WebhookOutcome(str, Enum):
    """웹훅 처리 결과 - 게이트웨이에는 항상 2xx로 응답하고 내부 기록에만 사용"""

    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    DUPLICATE = "DUPLICATE"  # 이미 종결된 구매 (멱등 no-op)
    PURCHASE_NOT_FOUND = "PURCHASE_NOT_FOUND"
    IGNORED = "IGNORED"  # 결제 성공/실패와 무관한 이벤트


class WebhookResult(BaseModel):
    outcome: WebhookOutcome
    purchase_id: Optional[int] = None
    credited_coins: int = 0
    reward_code: Optional[str] = None


class WebhookAckResponse(BaseModel):
    received: bool = True
