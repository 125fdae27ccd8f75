from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from coinapi.schemas.pagination import PaginationMeta


class GiftResponse(BaseModel):
    """선물 아이템"""

    id: int = Field(..., description="선물 ID")
    name: str = Field(..., description="선물명")
    description: Optional[str] = Field(None, description="설명")
    coin_price: int = Field(..., description="코인 가격")
    image_url: Optional[str] = Field(None, description="이미지 URL")
    is_active: bool = Field(..., description="사용 가능 여부")
    sort_order: int = Field(..., description="정렬 순서")

    class Config:
        from_attributes = True


class GiftListResponse(BaseModel):
    gifts: List[GiftResponse] = Field(..., description="선물 목록")
    total_count: int = Field(..., description="총 선물 수")


class SendGiftRequest(BaseModel):
    """선물 보내기 요청"""

    receiver_id: int = Field(..., gt=0, description="받는 크리에이터 ID")
    gift_id: int = Field(..., gt=0, description="선물 ID")
    stream_id: Optional[str] = Field(None, max_length=100, description="방송 ID")
    message: Optional[str] = Field(None, max_length=200, description="메시지")


class GiftTransactionResponse(BaseModel):
    """선물 거래 기록"""

    id: int
    sender_id: int
    receiver_id: int
    gift_id: int
    coin_amount: int = Field(..., description="보낸 사람이 지불한 코인")
    stream_id: Optional[str] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SendGiftResponse(BaseModel):
    transaction: GiftTransactionResponse
    creator_amount: int = Field(..., description="크리에이터에게 적립된 코인")
    sender_balance: int = Field(..., description="전송 후 보낸 사람 잔액")


class GiftHistoryResponse(BaseModel):
    """선물 내역 (최신순)"""

    gifts: List[GiftTransactionResponse]
    pagination: PaginationMeta
