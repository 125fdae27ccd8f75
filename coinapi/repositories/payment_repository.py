"""
코인 패키지 / 구매 리포지토리

구매 상태 전이는 항상 `WHERE status = 'PENDING'` 조건부 UPDATE로 수행합니다.
동시에 두 웹훅이 도착해도 한쪽만 1행을 갱신하고, 다른 쪽은 0행을 받아 no-op이 됩니다.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import asc, or_, update
from sqlalchemy.orm import Session

from coinapi.models.payment import (
    CoinPackage as CoinPackageModel,
    CoinPurchase as CoinPurchaseModel,
    PurchaseStatusEnum,
)
from coinapi.repositories.base import BaseRepository
from coinapi.schemas.payment import CoinPackageResponse, CoinPurchaseResponse


class PaymentRepository(BaseRepository[CoinPurchaseModel, CoinPurchaseResponse]):
    def __init__(self, db: Session):
        super().__init__(CoinPurchaseModel, CoinPurchaseResponse, db)

    # ==================== 패키지 ====================

    def get_active_packages(self) -> List[CoinPackageResponse]:
        packages = (
            self.db.query(CoinPackageModel)
            .filter(CoinPackageModel.is_active.is_(True))
            .order_by(asc(CoinPackageModel.sort_order), asc(CoinPackageModel.id))
            .all()
        )
        return [CoinPackageResponse.model_validate(p) for p in packages]

    def get_package(self, package_id: int) -> Optional[CoinPackageResponse]:
        package = self.db.get(CoinPackageModel, package_id)
        if package is None:
            return None
        return CoinPackageResponse.model_validate(package)

    # ==================== 구매 ====================

    def create_purchase(
        self,
        user_id: int,
        package: CoinPackageResponse,
        order_id: str,
        checkout_session_id: Optional[str],
        payment_gateway: str,
        discount_code_id: Optional[int] = None,
        discount_bonus_coins: int = 0,
    ) -> CoinPurchaseResponse:
        """PENDING 구매 기록 생성"""
        purchase = CoinPurchaseModel(
            user_id=user_id,
            package_id=package.id,
            coins=package.coins,
            bonus_coins=package.bonus_coins,
            total_coins=package.coins + package.bonus_coins + discount_bonus_coins,
            amount=package.price,
            currency=package.currency,
            order_id=order_id,
            checkout_session_id=checkout_session_id,
            status=PurchaseStatusEnum.PENDING,
            payment_gateway=payment_gateway,
            discount_code_id=discount_code_id,
            discount_bonus_coins=discount_bonus_coins,
        )
        self.db.add(purchase)
        self.db.flush()
        self.db.refresh(purchase)
        return self._to_schema(purchase)

    def find_by_gateway_ids(
        self, payment_id: Optional[str], session_id: Optional[str]
    ) -> Optional[CoinPurchaseResponse]:
        """게이트웨이 식별자로 구매 조회

        결제 ID는 transaction_id와, 세션 ID는 checkout_session_id와 비교합니다.
        게이트웨이가 체크아웃 시점과 웹훅 시점에 다른 식별자를 쓰는 경우를 위해
        결제 ID도 세션 ID 별칭으로 함께 비교합니다.
        """
        conditions = []
        if payment_id:
            conditions.append(CoinPurchaseModel.transaction_id == payment_id)
        session_ids = [i for i in (session_id, payment_id) if i]
        if session_ids:
            conditions.append(CoinPurchaseModel.checkout_session_id.in_(session_ids))
        if not conditions:
            return None

        purchase = (
            self.db.query(CoinPurchaseModel)
            .filter(or_(*conditions))
            .populate_existing()
            .order_by(asc(CoinPurchaseModel.id))
            .first()
        )
        return self._to_schema(purchase)

    def transition_status(
        self,
        purchase_id: int,
        new_status: PurchaseStatusEnum,
        payment_data: Optional[Dict[str, Any]] = None,
        transaction_id: Optional[str] = None,
        failure_reason: Optional[str] = None,
    ) -> bool:
        """PENDING -> 종결 상태 전이

        Returns:
            bool: 이 호출이 전이를 수행했으면 True, 이미 종결 상태였으면 False
        """
        values: Dict[str, Any] = {"status": new_status}
        if payment_data is not None:
            values["payment_data"] = payment_data
        if transaction_id:
            values["transaction_id"] = transaction_id
        if failure_reason is not None:
            values["failure_reason"] = failure_reason

        result = self.db.execute(
            update(CoinPurchaseModel)
            .where(
                CoinPurchaseModel.id == purchase_id,
                CoinPurchaseModel.status == PurchaseStatusEnum.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def drop_discount_bonus(self, purchase_id: int, total_coins: int) -> None:
        """정산 시점에 할인 코드 사용이 거절된 경우 보너스를 제외"""
        self.db.execute(
            update(CoinPurchaseModel)
            .where(CoinPurchaseModel.id == purchase_id)
            .values(total_coins=total_coins, discount_bonus_coins=0)
            .execution_options(synchronize_session=False)
        )

    def get_user_purchases(
        self, user_id: int, limit: int, offset: int
    ) -> Tuple[List[CoinPurchaseResponse], int]:
        return self.paginate({"user_id": user_id}, limit=limit, offset=offset)

    def get_by_order_id(
        self, user_id: int, order_id: str
    ) -> Optional[CoinPurchaseResponse]:
        purchase = (
            self.db.query(CoinPurchaseModel)
            .filter(
                CoinPurchaseModel.order_id == order_id,
                CoinPurchaseModel.user_id == user_id,
            )
            .populate_existing()
            .first()
        )
        return self._to_schema(purchase)
