from .auth import Token, TokenData
from .user import User
from .wallet import WalletResponse
from .payment import CoinPackageResponse, CoinPurchaseResponse, WebhookOutcome
from .discount import DiscountErrorCode, DiscountValidationResponse
from .gift import GiftResponse, GiftTransactionResponse
