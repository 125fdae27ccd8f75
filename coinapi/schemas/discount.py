from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from coinapi.models.discount import CodeTypeEnum, DiscountTypeEnum


class DiscountErrorCode(str, Enum):
    """할인 코드 검증 실패 종류 - 클라이언트가 종류별로 메시지를 분기"""

    INVALID_CODE = "INVALID_CODE"
    EXPIRED_CODE = "EXPIRED_CODE"
    ALREADY_USED = "ALREADY_USED"
    MAX_REDEMPTIONS = "MAX_REDEMPTIONS"
    MIN_PURCHASE = "MIN_PURCHASE"
    INACTIVE_CODE = "INACTIVE_CODE"


class DiscountValidateRequest(BaseModel):
    """할인 코드 검증 요청"""

    code: str = Field(..., min_length=1, max_length=50, description="할인 코드")
    package_id: int = Field(..., gt=0, description="적용할 패키지 ID")

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Discount code is required")
        return v


class DiscountValidationData(BaseModel):
    """검증 성공 시 미리보기 정보"""

    code_id: int = Field(..., description="할인 코드 ID")
    code: str = Field(..., description="할인 코드")
    discount_type: DiscountTypeEnum
    discount_value: int
    package_price: int = Field(..., description="패키지 가격")
    base_coins: int = Field(..., description="패키지 기본 + 보너스 코인")
    bonus_coins: int = Field(..., description="할인 코드로 추가되는 코인")
    total_coins: int = Field(..., description="최종 지급 코인")
    expires_at: Optional[datetime] = None


class DiscountValidationResponse(BaseModel):
    """할인 코드 검증 결과"""

    success: bool = Field(..., description="검증 성공 여부")
    data: Optional[DiscountValidationData] = None
    error: Optional[str] = Field(None, description="사용자 메시지")
    error_code: Optional[DiscountErrorCode] = Field(None, description="실패 종류")

    @classmethod
    def fail(cls, error_code: DiscountErrorCode, error: str) -> "DiscountValidationResponse":
        return cls(success=False, error=error, error_code=error_code)


class DiscountCodeResponse(BaseModel):
    """할인 코드"""

    id: int
    code: str
    description: Optional[str] = None
    discount_type: DiscountTypeEnum
    discount_value: int
    code_type: CodeTypeEnum
    owner_id: Optional[int] = None
    is_one_time_use: bool
    max_redemptions: Optional[int] = None
    current_redemptions: int
    min_purchase_amount: Optional[int] = None
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserDiscountCodeResponse(DiscountCodeResponse):
    """내 할인 코드 - 상태 플래그는 조회 시점에 계산 (저장하지 않음)"""

    is_expired: bool = False
    is_used_by_user: bool = False
    is_maxed_out: bool = False


class UserDiscountCodesResponse(BaseModel):
    codes: List[UserDiscountCodeResponse]
    total_count: int


class LatestRewardCodeResponse(BaseModel):
    reward_code: Optional[DiscountCodeResponse] = None
