from typing import List, Optional, Tuple

from sqlalchemy import asc
from sqlalchemy.orm import Session

from coinapi.models.gift import Gift as GiftModel, GiftTransaction as GiftTransactionModel
from coinapi.repositories.base import BaseRepository
from coinapi.schemas.gift import GiftResponse, GiftTransactionResponse


class GiftRepository(BaseRepository[GiftTransactionModel, GiftTransactionResponse]):
    """선물 카탈로그 + 선물 거래 기록 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(GiftTransactionModel, GiftTransactionResponse, db)

    def get_active_gifts(self) -> List[GiftResponse]:
        gifts = (
            self.db.query(GiftModel)
            .filter(GiftModel.is_active.is_(True))
            .order_by(asc(GiftModel.sort_order), asc(GiftModel.id))
            .all()
        )
        return [GiftResponse.model_validate(g) for g in gifts]

    def get_gift(self, gift_id: int) -> Optional[GiftResponse]:
        gift = self.db.get(GiftModel, gift_id)
        if gift is None:
            return None
        return GiftResponse.model_validate(gift)

    def create_transaction(
        self,
        sender_id: int,
        receiver_id: int,
        gift_id: int,
        coin_amount: int,
        stream_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> GiftTransactionResponse:
        # coin_amount는 전송 시점 가격의 복사본
        transaction = GiftTransactionModel(
            sender_id=sender_id,
            receiver_id=receiver_id,
            gift_id=gift_id,
            coin_amount=coin_amount,
            stream_id=stream_id,
            message=message,
        )
        self.db.add(transaction)
        self.db.flush()
        self.db.refresh(transaction)
        return self._to_schema(transaction)

    def get_sent(
        self, user_id: int, limit: int, offset: int
    ) -> Tuple[List[GiftTransactionResponse], int]:
        return self.paginate({"sender_id": user_id}, limit=limit, offset=offset)

    def get_received(
        self, user_id: int, limit: int, offset: int
    ) -> Tuple[List[GiftTransactionResponse], int]:
        return self.paginate({"receiver_id": user_id}, limit=limit, offset=offset)
