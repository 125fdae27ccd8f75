"""
선물 전송 서비스

선물 한 번은 다음 작업을 하나의 트랜잭션으로 수행합니다.
1. 보낸 사람 지갑에서 선물 가격만큼 차감 (잔액 부족 시 전체 중단)
2. 받는 크리에이터 지갑에 가격의 CREATOR_SHARE_PERCENT% (내림) 적립
3. 선물 거래 기록 추가 (coin_amount = 보낸 사람이 지불한 전체 가격)

나머지 몫은 플랫폼 수수료이며 별도 지갑 행으로 기록하지 않습니다.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from coinapi.config import settings
from coinapi.core.exceptions import (
    GiftNotFoundError,
    ReceiverNotCreatorError,
    SelfGiftError,
)
from coinapi.database.session import atomic
from coinapi.repositories.gift_repository import GiftRepository
from coinapi.repositories.user_repository import UserRepository
from coinapi.repositories.wallet_repository import WalletRepository
from coinapi.schemas.gift import (
    GiftHistoryResponse,
    GiftListResponse,
    SendGiftResponse,
)
from coinapi.schemas.pagination import PaginationMeta

logger = logging.getLogger(__name__)


def creator_share(coin_price: int) -> int:
    return coin_price * settings.CREATOR_SHARE_PERCENT // 100


class GiftService:
    def __init__(self, db: Session):
        self.db = db
        self.gift_repo = GiftRepository(db)
        self.wallet_repo = WalletRepository(db)
        self.user_repo = UserRepository(db)

    def list_gifts(self) -> GiftListResponse:
        gifts = self.gift_repo.get_active_gifts()
        return GiftListResponse(gifts=gifts, total_count=len(gifts))

    def send_gift(
        self,
        sender_id: int,
        receiver_id: int,
        gift_id: int,
        stream_id: Optional[str] = None,
        message: Optional[str] = None,
    ) -> SendGiftResponse:
        """크리에이터에게 선물 보내기

        Raises:
            GiftNotFoundError: 선물이 없거나 비활성
            SelfGiftError: 자기 자신에게 전송
            ReceiverNotCreatorError: 수신자가 승인된 크리에이터가 아님
            InsufficientBalanceError: 잔액 부족 (아무 지갑도 변경되지 않음)
        """
        gift = self.gift_repo.get_gift(gift_id)
        if gift is None or not gift.is_active:
            raise GiftNotFoundError(gift_id)

        if sender_id == receiver_id:
            raise SelfGiftError()

        if not self.user_repo.is_approved_creator(receiver_id):
            raise ReceiverNotCreatorError(receiver_id)

        amount = creator_share(gift.coin_price)

        with atomic(self.db):
            self.wallet_repo.lock_wallets([sender_id, receiver_id])
            sender_wallet = self.wallet_repo.debit(sender_id, gift.coin_price)
            self.wallet_repo.credit(receiver_id, amount, earned_delta=amount)
            transaction = self.gift_repo.create_transaction(
                sender_id=sender_id,
                receiver_id=receiver_id,
                gift_id=gift.id,
                coin_amount=gift.coin_price,
                stream_id=stream_id,
                message=message,
            )

        logger.info(
            f"Gift {gift.id} sent: {sender_id} -> {receiver_id}, "
            f"price {gift.coin_price}, creator {amount}"
        )
        return SendGiftResponse(
            transaction=transaction,
            creator_amount=amount,
            sender_balance=sender_wallet.balance,
        )

    def get_gifts_sent(self, user_id: int, limit: int, offset: int) -> GiftHistoryResponse:
        gifts, total = self.gift_repo.get_sent(user_id, limit=limit, offset=offset)
        return GiftHistoryResponse(
            gifts=gifts, pagination=PaginationMeta.build(limit, offset, total)
        )

    def get_gifts_received(
        self, user_id: int, limit: int, offset: int
    ) -> GiftHistoryResponse:
        gifts, total = self.gift_repo.get_received(user_id, limit=limit, offset=offset)
        return GiftHistoryResponse(
            gifts=gifts, pagination=PaginationMeta.build(limit, offset, total)
        )
