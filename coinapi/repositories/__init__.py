# Repository layer - Data access with Pydantic responses

from .base import BaseRepository
from .user_repository import UserRepository
from .wallet_repository import WalletRepository
from .discount_repository import DiscountRepository
from .payment_repository import PaymentRepository
from .gift_repository import GiftRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "WalletRepository",
    "DiscountRepository",
    "PaymentRepository",
    "GiftRepository",
]
