from pydantic import BaseModel, Field
from typing import Optional

from coinapi.config import settings


class PaginationMeta(BaseModel):
    """페이지네이션 메타 정보"""

    limit: int = Field(..., description="페이지 크기")
    offset: int = Field(..., description="오프셋")
    total_count: int = Field(..., description="전체 항목 수")
    has_next: bool = Field(..., description="다음 페이지 존재 여부")

    @classmethod
    def build(cls, limit: int, offset: int, total_count: int) -> "PaginationMeta":
        return cls(
            limit=limit,
            offset=offset,
            total_count=total_count,
            has_next=offset + limit < total_count,
        )


# 엔드포인트별 페이지네이션 제한
class PaginationLimits:
    PURCHASE_HISTORY = {
        "min": 1,
        "max": settings.HISTORY_PAGE_MAX,
        "default": settings.HISTORY_PAGE_DEFAULT,
    }
    GIFT_HISTORY = PURCHASE_HISTORY


def clamp_limit(limit: Optional[int], bounds: dict) -> int:
    if limit is None:
        return bounds["default"]
    return max(bounds["min"], min(limit, bounds["max"]))
