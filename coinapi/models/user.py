"""
사용자 / 크리에이터 승인 모델

인증과 크리에이터 심사는 외부 서브시스템이 담당합니다. 코인 경제 엔진은
현재 사용자 확인과 "선물 수신자가 승인된 크리에이터인가" 확인에 필요한
최소한의 컬럼만 읽습니다.
"""

import enum
from typing import Optional

from sqlalchemy import BigInteger, Boolean, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from coinapi.models.base import BaseModel, BigIntPK


class CreatorApplicationStatus(enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class User(BaseModel):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    nickname: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class CreatorApplication(BaseModel):
    __tablename__ = "creator_applications"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), unique=True, nullable=False
    )
    status: Mapped[CreatorApplicationStatus] = mapped_column(
        SAEnum(CreatorApplicationStatus),
        default=CreatorApplicationStatus.PENDING,
        nullable=False,
    )
    review_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
