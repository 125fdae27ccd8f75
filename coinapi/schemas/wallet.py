from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class WalletResponse(BaseModel):
    """코인 지갑 응답"""

    user_id: int = Field(..., description="사용자 ID")
    balance: int = Field(..., description="현재 코인 잔액")
    total_earned: int = Field(..., description="선물로 적립된 누적 코인")
    total_spent: int = Field(..., description="충전/사용 누적 코인")
    updated_at: Optional[datetime] = Field(None, description="마지막 변경 시간")

    class Config:
        from_attributes = True
