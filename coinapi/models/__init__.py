# SQLAlchemy models - Base.metadata에 모든 테이블을 등록하기 위해 import

from .base import Base
from .user import User, CreatorApplication
from .wallet import CoinWallet
from .discount import DiscountCode, DiscountRedemption
from .payment import CoinPackage, CoinPurchase
from .gift import Gift, GiftTransaction

__all__ = [
    "Base",
    "User",
    "CreatorApplication",
    "CoinWallet",
    "DiscountCode",
    "DiscountRedemption",
    "CoinPackage",
    "CoinPurchase",
    "Gift",
    "GiftTransaction",
]
