"""
코인 구매 / 정산 서비스

상태 기계: PENDING -> COMPLETED (결제 성공) 또는 PENDING -> FAILED (결제 실패)
두 종결 상태에서는 더 이상 전이하지 않습니다.

웹훅은 최소 한 번 이상 전달된다고 가정합니다. 같은 결제 성공 이벤트가 여러 번,
또는 동시에 도착해도 조건부 상태 전이(WHERE status = 'PENDING')를 통과한 한 번만
지갑에 코인을 적립합니다. 상태 전이, 할인 코드 사용 기록, 지갑 적립은 하나의
트랜잭션이며, 리워드 코드 발급은 커밋 이후에 별도로 시도합니다.
"""

import logging
import secrets
import time
from typing import Optional

from sqlalchemy.orm import Session

from coinapi.core.exceptions import DiscountCodeError, NotFoundError
from coinapi.database.session import atomic
from coinapi.models.payment import PurchaseStatusEnum
from coinapi.providers.payment.events import PaymentEvent, PaymentEventKind
from coinapi.providers.payment.gateway import PaymentGatewayClient
from coinapi.repositories.payment_repository import PaymentRepository
from coinapi.repositories.wallet_repository import WalletRepository
from coinapi.schemas.pagination import PaginationMeta
from coinapi.schemas.payment import (
    CheckoutSessionResponse,
    CoinPackageListResponse,
    CoinPurchaseResponse,
    PurchaseHistoryResponse,
    WebhookOutcome,
    WebhookResult,
)
from coinapi.schemas.user import User as UserSchema
from coinapi.services.discount_service import DiscountService

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_REASON = "Payment failed"


def generate_order_id(user_id: int) -> str:
    return f"order_{int(time.time() * 1000)}_{user_id}_{secrets.token_hex(4)}"


class PurchaseService:
    def __init__(self, db: Session, gateway: PaymentGatewayClient):
        self.db = db
        self.gateway = gateway
        self.payment_repo = PaymentRepository(db)
        self.wallet_repo = WalletRepository(db)
        self.discount_service = DiscountService(db)

    def list_packages(self) -> CoinPackageListResponse:
        packages = self.payment_repo.get_active_packages()
        return CoinPackageListResponse(packages=packages, total_count=len(packages))

    async def open_purchase(
        self,
        user: UserSchema,
        package_id: int,
        discount_code: Optional[str] = None,
    ) -> CheckoutSessionResponse:
        """체크아웃 세션을 열고 PENDING 구매 기록 생성

        Raises:
            NotFoundError: 패키지가 없거나 비활성
            DiscountCodeError: 할인 코드 검증 실패 (error_code에 실패 종류)
            PaymentGatewayError: 게이트웨이 호출 실패
        """
        package = self.payment_repo.get_package(package_id)
        if package is None or not package.is_active:
            raise NotFoundError(
                "Package not found or inactive", details={"package_id": package_id}
            )

        discount_code_id = None
        discount_bonus_coins = 0
        if discount_code:
            validation = self.discount_service.validate(discount_code, package_id, user.id)
            if not validation.success:
                raise DiscountCodeError(
                    validation.error_code.value,
                    validation.error,
                    details={"code": discount_code.strip().upper()},
                )
            discount_code_id = validation.data.code_id
            discount_bonus_coins = validation.data.bonus_coins

        order_id = generate_order_id(user.id)
        session = await self.gateway.create_checkout_session(
            product_id=package.gateway_product_id or str(package.id),
            order_id=order_id,
            customer_email=user.email,
            customer_name=user.nickname,
        )

        with atomic(self.db):
            purchase = self.payment_repo.create_purchase(
                user_id=user.id,
                package=package,
                order_id=order_id,
                checkout_session_id=session.session_id,
                payment_gateway=self.gateway.name,
                discount_code_id=discount_code_id,
                discount_bonus_coins=discount_bonus_coins,
            )

        logger.info(
            f"Checkout session {session.session_id} created for user {user.id}: "
            f"purchase {purchase.id}, order {order_id}, total {purchase.total_coins} coins"
        )
        return CheckoutSessionResponse(
            purchase_id=purchase.id,
            order_id=order_id,
            session_id=session.session_id,
            checkout_url=session.checkout_url,
            total_coins=purchase.total_coins,
            amount=purchase.amount,
            currency=purchase.currency,
        )

    def apply_webhook(self, event: PaymentEvent) -> WebhookResult:
        """결제 이벤트를 구매 기록에 반영"""
        ids = f"payment_id={event.payment_id} session_id={event.session_id}"

        if not event.payment_id and not event.session_id:
            logger.error(f"Webhook {event.event_type} carries no payment or session id")
            return WebhookResult(outcome=WebhookOutcome.PURCHASE_NOT_FOUND)

        purchase = self.payment_repo.find_by_gateway_ids(event.payment_id, event.session_id)
        if purchase is None:
            logger.warning(f"Purchase not found for webhook {event.event_type} ({ids})")
            return WebhookResult(outcome=WebhookOutcome.PURCHASE_NOT_FOUND)

        if purchase.status != PurchaseStatusEnum.PENDING:
            logger.info(
                f"Duplicate webhook {event.event_type} for purchase {purchase.id} "
                f"(status {purchase.status.value}, {ids})"
            )
            return WebhookResult(
                outcome=WebhookOutcome.DUPLICATE, purchase_id=purchase.id
            )

        if event.kind == PaymentEventKind.SUCCEEDED:
            return self._settle_success(purchase, event)
        if event.kind == PaymentEventKind.FAILED:
            return self._settle_failure(purchase, event)

        logger.info(
            f"Ignored webhook {event.event_type} for purchase {purchase.id} ({ids})"
        )
        return WebhookResult(outcome=WebhookOutcome.IGNORED, purchase_id=purchase.id)

    def _settle_success(
        self, purchase: CoinPurchaseResponse, event: PaymentEvent
    ) -> WebhookResult:
        with atomic(self.db):
            transitioned = self.payment_repo.transition_status(
                purchase.id,
                PurchaseStatusEnum.COMPLETED,
                payment_data=event.payload,
                transaction_id=event.payment_id,
            )
            if transitioned:
                credited = purchase.total_coins
                if purchase.discount_code_id is not None:
                    redeemed = self.discount_service.redeem(
                        purchase.discount_code_id,
                        purchase.id,
                        purchase.user_id,
                        purchase.discount_bonus_coins,
                    )
                    if not redeemed:
                        credited -= purchase.discount_bonus_coins
                        self.payment_repo.drop_discount_bonus(purchase.id, credited)
                        logger.warning(
                            f"Discount code {purchase.discount_code_id} refused at settlement "
                            f"for purchase {purchase.id}; bonus of "
                            f"{purchase.discount_bonus_coins} coins dropped"
                        )

                self.wallet_repo.credit(
                    purchase.user_id, credited, spent_delta=credited
                )

        if not transitioned:
            logger.info(
                f"Purchase {purchase.id} settled concurrently; webhook "
                f"{event.event_type} is a no-op"
            )
            return WebhookResult(
                outcome=WebhookOutcome.DUPLICATE, purchase_id=purchase.id
            )

        logger.info(
            f"Purchase {purchase.id} completed (order {purchase.order_id}, "
            f"transaction {event.payment_id}, event {event.event_type}): "
            f"credited {credited} coins to user {purchase.user_id}"
        )

        reward_code = None
        try:
            reward = self.discount_service.issue_reward(purchase.user_id, purchase.amount)
            reward_code = reward.code
        except Exception as e:
            # 리워드 발급 실패는 정산을 되돌리지 않음
            logger.error(
                f"Reward code issuance failed for purchase {purchase.id} "
                f"(user {purchase.user_id}): {str(e)}",
                exc_info=True,
            )

        return WebhookResult(
            outcome=WebhookOutcome.COMPLETED,
            purchase_id=purchase.id,
            credited_coins=credited,
            reward_code=reward_code,
        )

    def _settle_failure(
        self, purchase: CoinPurchaseResponse, event: PaymentEvent
    ) -> WebhookResult:
        reason = event.failure_reason or DEFAULT_FAILURE_REASON
        with atomic(self.db):
            transitioned = self.payment_repo.transition_status(
                purchase.id,
                PurchaseStatusEnum.FAILED,
                payment_data=event.payload,
                transaction_id=event.payment_id,
                failure_reason=reason,
            )

        if not transitioned:
            logger.info(
                f"Purchase {purchase.id} settled concurrently; webhook "
                f"{event.event_type} is a no-op"
            )
            return WebhookResult(
                outcome=WebhookOutcome.DUPLICATE, purchase_id=purchase.id
            )

        logger.info(
            f"Purchase {purchase.id} failed (order {purchase.order_id}, "
            f"transaction {event.payment_id}, event {event.event_type}): {reason}"
        )
        return WebhookResult(outcome=WebhookOutcome.FAILED, purchase_id=purchase.id)

    def get_purchase_history(
        self, user_id: int, limit: int, offset: int
    ) -> PurchaseHistoryResponse:
        purchases, total = self.payment_repo.get_user_purchases(
            user_id, limit=limit, offset=offset
        )
        return PurchaseHistoryResponse(
            purchases=purchases,
            pagination=PaginationMeta.build(limit, offset, total),
        )

    def get_purchase_by_order_id(self, user_id: int, order_id: str) -> CoinPurchaseResponse:
        purchase = self.payment_repo.get_by_order_id(user_id, order_id)
        if purchase is None:
            raise NotFoundError("Purchase not found", details={"order_id": order_id})
        return purchase
