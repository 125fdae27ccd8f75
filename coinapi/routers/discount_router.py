from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from coinapi.core.auth_middleware import get_current_active_user
from coinapi.deps import get_discount_service
from coinapi.schemas.discount import (
    DiscountValidateRequest,
    DiscountValidationResponse,
    LatestRewardCodeResponse,
    UserDiscountCodesResponse,
)
from coinapi.schemas.user import User as UserSchema
from coinapi.services.discount_service import DiscountService

router = APIRouter(prefix="/discount", tags=["discount"])


@router.post(
    "/validate",
    response_model=DiscountValidationResponse,
    responses={400: {"model": DiscountValidationResponse}},
)
def validate_discount_code(
    request: DiscountValidateRequest,
    current_user: UserSchema = Depends(get_current_active_user),
    discount_service: DiscountService = Depends(get_discount_service),
):
    """
    할인 코드 미리보기 검증 (부작용 없음)

    실패 시 400과 함께 error_code로 실패 종류를 돌려줍니다:
    INVALID_CODE | INACTIVE_CODE | EXPIRED_CODE | ALREADY_USED | MAX_REDEMPTIONS | MIN_PURCHASE
    """
    result = discount_service.validate(request.code, request.package_id, current_user.id)
    if not result.success:
        return JSONResponse(status_code=400, content=result.model_dump(mode="json"))
    return result


@router.get("/my-codes", response_model=UserDiscountCodesResponse)
def get_my_codes(
    current_user: UserSchema = Depends(get_current_active_user),
    discount_service: DiscountService = Depends(get_discount_service),
) -> UserDiscountCodesResponse:
    return discount_service.get_user_codes(current_user.id)


@router.get("/latest-reward", response_model=LatestRewardCodeResponse)
def get_latest_reward(
    current_user: UserSchema = Depends(get_current_active_user),
    discount_service: DiscountService = Depends(get_discount_service),
) -> LatestRewardCodeResponse:
    return discount_service.get_latest_reward_code(current_user.id)
