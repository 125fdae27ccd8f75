"""
할인 코드 서비스

검증(validate)은 부작용이 없는 순수 조회이며, 다음 순서로 검사하고 처음 실패한
항목의 오류 코드를 돌려줍니다.
1. 코드 존재 (대소문자 무시)            -> INVALID_CODE
2. 활성 상태                           -> INACTIVE_CODE
3. 만료되지 않음                        -> EXPIRED_CODE
4. 1회용이면 이 사용자의 사용 기록 없음   -> ALREADY_USED
5. 최대 사용 횟수 미도달                 -> MAX_REDEMPTIONS
6. 대상 패키지 존재 + 활성               -> INVALID_CODE
7. 최소 구매 금액 충족                   -> MIN_PURCHASE

모든 금액은 최소 통화 단위 정수이며 부동소수점을 쓰지 않습니다.
"""

import logging
import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from coinapi.config import settings
from coinapi.database.session import atomic
from coinapi.models.discount import CodeTypeEnum, DiscountTypeEnum
from coinapi.repositories.discount_repository import DiscountRepository
from coinapi.repositories.payment_repository import PaymentRepository
from coinapi.schemas.discount import (
    DiscountCodeResponse,
    DiscountErrorCode,
    DiscountValidationData,
    DiscountValidationResponse,
    LatestRewardCodeResponse,
    UserDiscountCodeResponse,
    UserDiscountCodesResponse,
)

logger = logging.getLogger(__name__)

REWARD_CODE_ALPHABET = string.ascii_uppercase + string.digits


def compute_bonus(code, package) -> int:
    """할인 코드가 패키지에 더해주는 보너스 코인

    - PERCENTAGE: coins * value / 100 의 내림
    - FIXED: 금액(value)을 패키지의 코인당 가격(price / coins)으로 나눈 값의 내림.
      value / (price / coins) == value * coins / price 이므로 정수 나눗셈 한 번으로 계산
    """
    if code.discount_type == DiscountTypeEnum.PERCENTAGE:
        return max(package.coins, 0) * code.discount_value // 100

    if package.price <= 0 or package.coins <= 0:
        return 0
    return code.discount_value * package.coins // package.price


def format_major_units(amount: int) -> str:
    """최소 통화 단위를 표시용 주 단위 문자열로 변환 (15000 -> "150", 15050 -> "150.50")"""
    major, minor = divmod(amount, 100)
    return f"{major}" if minor == 0 else f"{major}.{minor:02d}"


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite는 타임존 정보 없이 돌려주므로 UTC로 간주
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if expires_at is None:
        return False
    now = now or datetime.now(timezone.utc)
    return _as_utc(expires_at) <= now


def is_maxed_out(code: DiscountCodeResponse) -> bool:
    return (
        code.max_redemptions is not None
        and code.current_redemptions >= code.max_redemptions
    )


class DiscountService:
    """할인 코드 검증/사용/리워드 발급 서비스"""

    def __init__(self, db: Session):
        self.db = db
        self.discount_repo = DiscountRepository(db)
        self.payment_repo = PaymentRepository(db)

    def validate(
        self, code: str, package_id: int, user_id: int
    ) -> DiscountValidationResponse:
        """할인 코드 검증 (부작용 없음)

        Returns:
            DiscountValidationResponse: 성공 시 보너스 미리보기, 실패 시 error_code
        """
        discount = self.discount_repo.get_by_code(code)
        if discount is None:
            return DiscountValidationResponse.fail(
                DiscountErrorCode.INVALID_CODE, "Discount code not found"
            )

        if not discount.is_active:
            return DiscountValidationResponse.fail(
                DiscountErrorCode.INACTIVE_CODE, "This code is no longer active"
            )

        if is_expired(discount.expires_at):
            return DiscountValidationResponse.fail(
                DiscountErrorCode.EXPIRED_CODE, "This code has expired"
            )

        if discount.is_one_time_use and self.discount_repo.has_user_redeemed(
            discount.id, user_id
        ):
            return DiscountValidationResponse.fail(
                DiscountErrorCode.ALREADY_USED, "You have already used this code"
            )

        if is_maxed_out(discount):
            return DiscountValidationResponse.fail(
                DiscountErrorCode.MAX_REDEMPTIONS,
                "This code has reached its usage limit",
            )

        package = self.payment_repo.get_package(package_id)
        if package is None or not package.is_active:
            return DiscountValidationResponse.fail(
                DiscountErrorCode.INVALID_CODE, "Package not found or inactive"
            )

        if (
            discount.min_purchase_amount is not None
            and package.price < discount.min_purchase_amount
        ):
            return DiscountValidationResponse.fail(
                DiscountErrorCode.MIN_PURCHASE,
                f"Minimum purchase of {format_major_units(discount.min_purchase_amount)} "
                f"{package.currency} required",
            )

        bonus_coins = compute_bonus(discount, package)
        base_coins = package.coins + package.bonus_coins

        return DiscountValidationResponse(
            success=True,
            data=DiscountValidationData(
                code_id=discount.id,
                code=discount.code,
                discount_type=discount.discount_type,
                discount_value=discount.discount_value,
                package_price=package.price,
                base_coins=base_coins,
                bonus_coins=bonus_coins,
                total_coins=base_coins + bonus_coins,
                expires_at=discount.expires_at,
            ),
        )

    def redeem(
        self, code_id: int, purchase_id: int, user_id: int, bonus_coins: int
    ) -> bool:
        """할인 코드 사용 기록 - 호출한 쪽의 트랜잭션 안에서 실행 (커밋하지 않음)"""
        redeemed = self.discount_repo.redeem(code_id, purchase_id, user_id, bonus_coins)
        if redeemed:
            logger.info(
                f"Discount code {code_id} redeemed for purchase {purchase_id} "
                f"(user {user_id}, bonus {bonus_coins})"
            )
        return redeemed

    def issue_reward(self, user_id: int, purchase_amount: int) -> DiscountCodeResponse:
        """구매 완료 후 리워드 코드 발급

        코드 문자열이 이미 존재하면(유니크 제약 위반) 롤백 후 새 코드로 재시도합니다.
        """
        discount_value = purchase_amount * settings.REWARD_PERCENT // 100
        expires_at = datetime.now(timezone.utc) + timedelta(
            days=settings.REWARD_CODE_TTL_DAYS
        )
        description = (
            f"Reward code - {format_major_units(discount_value)} worth of bonus coins"
        )

        last_error: Optional[IntegrityError] = None
        for attempt in range(1, settings.REWARD_CODE_MAX_ATTEMPTS + 1):
            code = self._generate_reward_code()
            try:
                with atomic(self.db):
                    reward = self.discount_repo.create_code(
                        code=code,
                        discount_type=DiscountTypeEnum.FIXED,
                        discount_value=discount_value,
                        code_type=CodeTypeEnum.REWARD,
                        owner_id=user_id,
                        description=description,
                        is_one_time_use=True,
                        expires_at=expires_at,
                        is_active=True,
                    )
            except IntegrityError as e:
                last_error = e
                logger.warning(
                    f"Reward code collision on attempt {attempt} for user {user_id}: {code}"
                )
                continue

            logger.info(f"Reward code {reward.code} issued for user {user_id}")
            return reward

        raise RuntimeError(
            f"Failed to issue a unique reward code after "
            f"{settings.REWARD_CODE_MAX_ATTEMPTS} attempts"
        ) from last_error

    def _generate_reward_code(self) -> str:
        suffix = "".join(
            secrets.choice(REWARD_CODE_ALPHABET)
            for _ in range(settings.REWARD_CODE_LENGTH)
        )
        return f"{settings.REWARD_CODE_PREFIX}{suffix}"

    def get_user_codes(self, user_id: int) -> UserDiscountCodesResponse:
        """내 할인 코드 목록 - 상태 플래그는 조회 시점에 계산"""
        codes = self.discount_repo.get_owned_codes(user_id)
        used_code_ids = self.discount_repo.get_redeemed_code_ids(user_id)
        now = datetime.now(timezone.utc)

        annotated: List[UserDiscountCodeResponse] = [
            UserDiscountCodeResponse(
                **code.model_dump(),
                is_expired=is_expired(code.expires_at, now),
                is_used_by_user=code.id in used_code_ids,
                is_maxed_out=is_maxed_out(code),
            )
            for code in codes
        ]
        return UserDiscountCodesResponse(codes=annotated, total_count=len(annotated))

    def get_latest_reward_code(self, user_id: int) -> LatestRewardCodeResponse:
        return LatestRewardCodeResponse(
            reward_code=self.discount_repo.get_latest_reward(user_id)
        )

    def get_code_by_string(self, code: str) -> Optional[DiscountCodeResponse]:
        return self.discount_repo.get_by_code(code)
