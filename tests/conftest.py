import os

# 앱 모듈 import 전에 설정 (기본값은 Postgres URL)
os.environ.setdefault("DATABASE_URL", "sqlite:///./.pytest_coinapi.db")

from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coinapi.models import Base
from coinapi.models.discount import CodeTypeEnum, DiscountCode, DiscountTypeEnum
from coinapi.models.gift import Gift
from coinapi.models.payment import CoinPackage, CoinPurchase, PurchaseStatusEnum
from coinapi.models.user import CreatorApplication, CreatorApplicationStatus, User
from coinapi.providers.payment.gateway import CheckoutSession


@pytest.fixture
def engine(tmp_path):
    """테스트마다 새 SQLite 파일 DB (여러 세션이 같은 DB를 공유할 수 있도록 파일 사용)"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'coins.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def other_db(session_factory):
    """동시 요청을 흉내 내기 위한 두 번째 세션"""
    session = session_factory()
    yield session
    session.close()


class Factory:
    """테스트 데이터 생성 헬퍼 - 생성 즉시 커밋"""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def _save(self, instance):
        self.db.add(instance)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def user(self, nickname: Optional[str] = None, is_active: bool = True) -> User:
        self._seq += 1
        nickname = nickname or f"user{self._seq}"
        return self._save(
            User(email=f"{nickname}@example.com", nickname=nickname, is_active=is_active)
        )

    def creator(
        self, status: CreatorApplicationStatus = CreatorApplicationStatus.APPROVED
    ) -> User:
        user = self.user()
        self._save(CreatorApplication(user_id=user.id, status=status))
        return user

    def package(
        self,
        coins: int = 100,
        bonus_coins: int = 0,
        price: int = 10000,
        is_active: bool = True,
        sort_order: int = 1,
        name: str = "Starter Pack",
    ) -> CoinPackage:
        return self._save(
            CoinPackage(
                name=name,
                coins=coins,
                bonus_coins=bonus_coins,
                price=price,
                currency="INR",
                gateway_product_id=f"pdt_{name.lower().replace(' ', '_')}",
                is_active=is_active,
                sort_order=sort_order,
            )
        )

    def gift(self, coin_price: int = 100, is_active: bool = True, name: str = "Diamond") -> Gift:
        return self._save(
            Gift(name=name, coin_price=coin_price, is_active=is_active, sort_order=1)
        )

    def discount_code(
        self,
        code: str = "WELCOME20",
        discount_type: DiscountTypeEnum = DiscountTypeEnum.PERCENTAGE,
        discount_value: int = 20,
        code_type: CodeTypeEnum = CodeTypeEnum.PROMO,
        owner_id: Optional[int] = None,
        is_one_time_use: bool = True,
        max_redemptions: Optional[int] = None,
        current_redemptions: int = 0,
        min_purchase_amount: Optional[int] = None,
        expires_at: Optional[datetime] = None,
        is_active: bool = True,
    ) -> DiscountCode:
        return self._save(
            DiscountCode(
                code=code.upper(),
                discount_type=discount_type,
                discount_value=discount_value,
                code_type=code_type,
                owner_id=owner_id,
                is_one_time_use=is_one_time_use,
                max_redemptions=max_redemptions,
                current_redemptions=current_redemptions,
                min_purchase_amount=min_purchase_amount,
                expires_at=expires_at,
                is_active=is_active,
            )
        )

    def purchase(
        self,
        user: User,
        package: CoinPackage,
        checkout_session_id: str = "cs_test_1",
        discount_code: Optional[DiscountCode] = None,
        discount_bonus_coins: int = 0,
        status: PurchaseStatusEnum = PurchaseStatusEnum.PENDING,
    ) -> CoinPurchase:
        self._seq += 1
        return self._save(
            CoinPurchase(
                user_id=user.id,
                package_id=package.id,
                coins=package.coins,
                bonus_coins=package.bonus_coins,
                total_coins=package.coins + package.bonus_coins + discount_bonus_coins,
                amount=package.price,
                currency=package.currency,
                order_id=f"order_test_{self._seq}",
                checkout_session_id=checkout_session_id,
                status=status,
                payment_gateway="dodo",
                discount_code_id=discount_code.id if discount_code else None,
                discount_bonus_coins=discount_bonus_coins,
            )
        )


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def future():
    return datetime.now(timezone.utc) + timedelta(days=7)


@pytest.fixture
def past():
    return datetime.now(timezone.utc) - timedelta(days=1)


@pytest.fixture
def mock_gateway():
    gateway = Mock()
    gateway.name = "dodo"
    gateway.create_checkout_session = AsyncMock(
        return_value=CheckoutSession(
            session_id="cs_test_1", checkout_url="https://checkout.test/cs_test_1"
        )
    )
    return gateway
