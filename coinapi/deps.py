from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.orm import Session

from coinapi.containers import Container
from coinapi.database.session import get_db
from coinapi.providers.payment.gateway import PaymentGatewayClient

# Services
from coinapi.services.wallet_service import WalletService
from coinapi.services.discount_service import DiscountService
from coinapi.services.purchase_service import PurchaseService
from coinapi.services.gift_service import GiftService


# 서비스는 요청마다 새 세션으로 생성 (세션을 요청 간에 공유하지 않음)


def get_wallet_service(db: Session = Depends(get_db)) -> WalletService:
    return WalletService(db=db)


def get_discount_service(db: Session = Depends(get_db)) -> DiscountService:
    return DiscountService(db=db)


def get_gift_service(db: Session = Depends(get_db)) -> GiftService:
    return GiftService(db=db)


@inject
def get_purchase_service(
    db: Session = Depends(get_db),
    gateway: PaymentGatewayClient = Depends(Provide[Container.gateways.payment_gateway]),
) -> PurchaseService:
    return PurchaseService(db=db, gateway=gateway)
