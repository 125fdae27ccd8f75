from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from coinapi.models.base import BaseModel, BigIntPK


class Gift(BaseModel):
    __tablename__ = "gifts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    coin_price: Mapped[int] = mapped_column(Integer, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class GiftTransaction(BaseModel):
    """선물 거래 기록 (추가 전용)

    coin_amount는 전송 시점의 Gift.coin_price를 복사해 둔 값입니다.
    이후 가격이 바뀌어도 과거 기록은 변하지 않습니다.
    """

    __tablename__ = "gift_transactions"
    __table_args__ = (
        Index("idx_gift_transactions_sender", "sender_id", "created_at"),
        Index("idx_gift_transactions_receiver", "receiver_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    receiver_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id"), nullable=False
    )
    gift_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("gifts.id"), nullable=False
    )
    coin_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    stream_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
