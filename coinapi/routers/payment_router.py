"""
코인 결제 API 라우터

- GET  /payment/wallet: 내 지갑 (없으면 생성)
- GET  /payment/packages: 판매 중인 코인 패키지
- POST /payment/purchase: 체크아웃 세션 열기 (PENDING 구매 생성)
- GET  /payment/purchases: 구매 내역 (최신순)
- GET  /payment/purchases/{order_id}: 주문 상태 조회 (결제 완료 페이지 폴링용)
- GET  /payment/gifts: 선물 목록
- POST /payment/gift: 크리에이터에게 선물 보내기
- GET  /payment/gifts-sent, /payment/gifts-received: 선물 내역 (최신순)

선물/구매 외의 경로로 지갑을 직접 변경하는 엔드포인트는 없습니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from coinapi.core.auth_middleware import get_current_active_user
from coinapi.deps import (
    get_gift_service,
    get_purchase_service,
    get_wallet_service,
)
from coinapi.schemas.gift import (
    GiftHistoryResponse,
    GiftListResponse,
    SendGiftRequest,
    SendGiftResponse,
)
from coinapi.schemas.pagination import PaginationLimits, clamp_limit
from coinapi.schemas.payment import (
    CheckoutSessionResponse,
    CoinPackageListResponse,
    CoinPurchaseResponse,
    PurchaseHistoryResponse,
    PurchaseRequest,
)
from coinapi.schemas.user import User as UserSchema
from coinapi.schemas.wallet import WalletResponse
from coinapi.services.gift_service import GiftService
from coinapi.services.purchase_service import PurchaseService
from coinapi.services.wallet_service import WalletService

router = APIRouter(prefix="/payment", tags=["payment"])


@router.get("/wallet", response_model=WalletResponse)
def get_my_wallet(
    current_user: UserSchema = Depends(get_current_active_user),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletResponse:
    return wallet_service.get_wallet(current_user.id)


@router.get("/packages", response_model=CoinPackageListResponse)
def list_packages(
    purchase_service: PurchaseService = Depends(get_purchase_service),
) -> CoinPackageListResponse:
    return purchase_service.list_packages()


@router.post("/purchase", response_model=CheckoutSessionResponse)
async def create_purchase(
    request: PurchaseRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    purchase_service: PurchaseService = Depends(get_purchase_service),
) -> CheckoutSessionResponse:
    """
    코인 패키지 구매 시작

    결제는 게이트웨이 페이지에서 진행되며, 코인은 웹훅으로 결제 완료가 확인된
    뒤에만 적립됩니다.

    HTTP Status:
        200: 체크아웃 세션 생성
        400: 할인 코드 검증 실패 (error.code에 실패 종류)
        404: 패키지 없음 또는 판매 중지
        502: 결제 게이트웨이 오류
    """
    return await purchase_service.open_purchase(
        current_user, request.package_id, discount_code=request.discount_code
    )


@router.get("/purchases", response_model=PurchaseHistoryResponse)
def get_purchase_history(
    limit: Optional[int] = Query(None, ge=1, description="페이지 크기"),
    offset: int = Query(0, ge=0, description="오프셋"),
    current_user: UserSchema = Depends(get_current_active_user),
    purchase_service: PurchaseService = Depends(get_purchase_service),
) -> PurchaseHistoryResponse:
    limit = clamp_limit(limit, PaginationLimits.PURCHASE_HISTORY)
    return purchase_service.get_purchase_history(current_user.id, limit, offset)


@router.get("/purchases/{order_id}", response_model=CoinPurchaseResponse)
def get_purchase(
    order_id: str = Path(..., min_length=1, max_length=100),
    current_user: UserSchema = Depends(get_current_active_user),
    purchase_service: PurchaseService = Depends(get_purchase_service),
) -> CoinPurchaseResponse:
    return purchase_service.get_purchase_by_order_id(current_user.id, order_id)


@router.get("/gifts", response_model=GiftListResponse)
def list_gifts(
    gift_service: GiftService = Depends(get_gift_service),
) -> GiftListResponse:
    return gift_service.list_gifts()


@router.post("/gift", response_model=SendGiftResponse)
def send_gift(
    request: SendGiftRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    gift_service: GiftService = Depends(get_gift_service),
) -> SendGiftResponse:
    """
    크리에이터에게 선물 보내기

    HTTP Status:
        200: 전송 완료
        400: 잔액 부족 / 자기 자신에게 전송 / 수신자가 크리에이터 아님
        404: 선물 없음 또는 비활성
    """
    return gift_service.send_gift(
        sender_id=current_user.id,
        receiver_id=request.receiver_id,
        gift_id=request.gift_id,
        stream_id=request.stream_id,
        message=request.message,
    )


@router.get("/gifts-sent", response_model=GiftHistoryResponse)
def get_gifts_sent(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(get_current_active_user),
    gift_service: GiftService = Depends(get_gift_service),
) -> GiftHistoryResponse:
    limit = clamp_limit(limit, PaginationLimits.GIFT_HISTORY)
    return gift_service.get_gifts_sent(current_user.id, limit, offset)


@router.get("/gifts-received", response_model=GiftHistoryResponse)
def get_gifts_received(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    current_user: UserSchema = Depends(get_current_active_user),
    gift_service: GiftService = Depends(get_gift_service),
) -> GiftHistoryResponse:
    limit = clamp_limit(limit, PaginationLimits.GIFT_HISTORY)
    return gift_service.get_gifts_received(current_user.id, limit, offset)
