"""
할인 코드 리포지토리

사용 처리(redeem)는 코드 행을 잠근 상태에서 상한/1회용 규칙을 다시 확인하고
사용 기록 추가와 current_redemptions 증가를 같은 트랜잭션 안에서 수행합니다.
"""

from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import desc, or_, update
from sqlalchemy.orm import Session

from coinapi.models.discount import (
    CodeTypeEnum,
    DiscountCode as DiscountCodeModel,
    DiscountRedemption as DiscountRedemptionModel,
    DiscountTypeEnum,
)
from coinapi.repositories.base import BaseRepository
from coinapi.schemas.discount import DiscountCodeResponse


def normalize_code(code: str) -> str:
    return code.strip().upper()


class DiscountRepository(BaseRepository[DiscountCodeModel, DiscountCodeResponse]):
    def __init__(self, db: Session):
        super().__init__(DiscountCodeModel, DiscountCodeResponse, db)

    def get_by_code(self, code: str) -> Optional[DiscountCodeResponse]:
        """코드 문자열로 조회 (대소문자 무시)"""
        model = (
            self.db.query(DiscountCodeModel)
            .filter(DiscountCodeModel.code == normalize_code(code))
            .first()
        )
        return self._to_schema(model)

    def has_user_redeemed(self, code_id: int, user_id: int) -> bool:
        return (
            self.db.query(DiscountRedemptionModel.id)
            .filter(
                DiscountRedemptionModel.discount_code_id == code_id,
                DiscountRedemptionModel.user_id == user_id,
            )
            .first()
            is not None
        )

    def get_redeemed_code_ids(self, user_id: int) -> Set[int]:
        rows = (
            self.db.query(DiscountRedemptionModel.discount_code_id)
            .filter(DiscountRedemptionModel.user_id == user_id)
            .distinct()
            .all()
        )
        return {row[0] for row in rows}

    def redeem(
        self, code_id: int, purchase_id: int, user_id: int, bonus_coins: int
    ) -> bool:
        """할인 코드 사용 기록 + 사용 횟수 증가

        Returns:
            bool: 상한 또는 1회용 규칙으로 거절되면 False (아무것도 기록하지 않음)
        """
        code = (
            self.db.query(DiscountCodeModel)
            .filter(DiscountCodeModel.id == code_id)
            .with_for_update()
            .first()
        )
        if code is None:
            return False

        if code.is_one_time_use and self.has_user_redeemed(code_id, user_id):
            return False

        # 상한 확인과 증가를 하나의 UPDATE 문으로
        result = self.db.execute(
            update(DiscountCodeModel)
            .where(
                DiscountCodeModel.id == code_id,
                or_(
                    DiscountCodeModel.max_redemptions.is_(None),
                    DiscountCodeModel.current_redemptions
                    < DiscountCodeModel.max_redemptions,
                ),
            )
            .values(current_redemptions=DiscountCodeModel.current_redemptions + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False

        self.db.add(
            DiscountRedemptionModel(
                discount_code_id=code_id,
                purchase_id=purchase_id,
                user_id=user_id,
                bonus_coins_awarded=bonus_coins,
            )
        )
        self.db.flush()
        return True

    def create_code(
        self,
        code: str,
        discount_type: DiscountTypeEnum,
        discount_value: int,
        code_type: CodeTypeEnum = CodeTypeEnum.PROMO,
        owner_id: Optional[int] = None,
        description: Optional[str] = None,
        is_one_time_use: bool = True,
        max_redemptions: Optional[int] = None,
        min_purchase_amount: Optional[int] = None,
        expires_at: Optional[datetime] = None,
        is_active: bool = True,
    ) -> DiscountCodeResponse:
        """할인 코드 생성 - 코드 중복 시 IntegrityError가 그대로 전파됨"""
        model = DiscountCodeModel(
            code=normalize_code(code),
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            code_type=code_type,
            owner_id=owner_id,
            is_one_time_use=is_one_time_use,
            max_redemptions=max_redemptions,
            current_redemptions=0,
            min_purchase_amount=min_purchase_amount,
            expires_at=expires_at,
            is_active=is_active,
        )
        self.db.add(model)
        self.db.flush()
        self.db.refresh(model)
        return self._to_schema(model)

    def get_owned_codes(self, user_id: int) -> List[DiscountCodeResponse]:
        models = (
            self.db.query(DiscountCodeModel)
            .filter(DiscountCodeModel.owner_id == user_id)
            .order_by(desc(DiscountCodeModel.created_at), desc(DiscountCodeModel.id))
            .all()
        )
        return self._to_schemas(models)

    def get_latest_reward(self, user_id: int) -> Optional[DiscountCodeResponse]:
        model = (
            self.db.query(DiscountCodeModel)
            .filter(
                DiscountCodeModel.owner_id == user_id,
                DiscountCodeModel.code_type == CodeTypeEnum.REWARD,
            )
            .order_by(desc(DiscountCodeModel.created_at), desc(DiscountCodeModel.id))
            .first()
        )
        return self._to_schema(model)
