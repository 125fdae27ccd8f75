"""
코인 경제 기본 데이터 시드 스크립트
코인 패키지, 선물 카탈로그, 프로모션 할인 코드를 초기 데이터로 설정
이미 존재하는 항목(이름/코드 기준)은 건너뜁니다.
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, timedelta, timezone

from coinapi.database.session import get_db_context
from coinapi.models.discount import CodeTypeEnum, DiscountCode, DiscountTypeEnum
from coinapi.models.gift import Gift
from coinapi.models.payment import CoinPackage

# (이름, 코인, 보너스, 가격(paise), 게이트웨이 상품 ID, 설명)
COIN_PACKAGES = [
    ("Starter Pack", 100, 0, 9900, "pdt_1PAmkl5yyS9V5GzNEdpoH", "Perfect for trying out gifts"),
    ("Popular Pack", 500, 50, 49900, "pdt_L70RW0ZIK6mX0Oj529rOe", "Most popular! Get 50 bonus coins"),
    ("Premium Pack", 1000, 150, 99900, "pdt_hQs5ujkfVmQn7yiiQgu3i", "Best value! Get 150 bonus coins"),
    ("Ultimate Pack", 2500, 500, 249900, "pdt_hMtRduaUdOucddrMFpIxj", "For super supporters! Get 500 bonus coins"),
]

# (이름, 설명, 코인 가격, 이미지)
GIFTS = [
    ("Heart", "Show some love", 10, "/gifts/heart.png"),
    ("Star", "You're a star!", 20, "/gifts/star.png"),
    ("Fire", "This stream is fire!", 50, "/gifts/fire.png"),
    ("Diamond", "Shine bright!", 100, "/gifts/diamond.png"),
    ("Crown", "King/Queen of content", 250, "/gifts/crown.png"),
    ("Rocket", "To the moon!", 500, "/gifts/rocket.png"),
]

# (코드, 종류, 값, 최대 사용, 최소 구매액, 유효 일수, 설명)
PROMO_CODES = [
    ("WELCOME20", DiscountTypeEnum.PERCENTAGE, 20, 100, None, 90, "Welcome discount - 20% bonus coins for new users"),
    ("FLAT50", DiscountTypeEnum.FIXED, 5000, 50, None, 60, "Flat 50 rupees worth of bonus coins"),
    ("SUMMER25", DiscountTypeEnum.PERCENTAGE, 25, 200, 49900, 60, "Summer special - 25% bonus coins on purchases 499+"),
    ("VIP30", DiscountTypeEnum.PERCENTAGE, 30, 25, 99900, 90, "VIP exclusive - 30% bonus coins on premium purchases"),
    ("FLAT100", DiscountTypeEnum.FIXED, 10000, 30, 99900, 60, "Flat 100 rupees worth of bonus coins on 999+ purchases"),
    ("NEWYEAR15", DiscountTypeEnum.PERCENTAGE, 15, 500, None, 120, "New Year special - 15% bonus coins"),
    ("UNLIMITED10", DiscountTypeEnum.PERCENTAGE, 10, None, None, None, "Evergreen 10% bonus coins - unlimited uses"),
]


def seed_coin_packages(db):
    existing = {name for (name,) in db.query(CoinPackage.name).all()}
    created = 0
    for sort_order, (name, coins, bonus, price, product_id, description) in enumerate(
        COIN_PACKAGES, start=1
    ):
        if name in existing:
            continue
        db.add(
            CoinPackage(
                name=name,
                description=description,
                coins=coins,
                bonus_coins=bonus,
                price=price,
                currency="INR",
                gateway_product_id=product_id,
                is_active=True,
                sort_order=sort_order,
            )
        )
        created += 1
    print(f"✅ 코인 패키지 시드 완료: {created}개 생성")


def seed_gifts(db):
    existing = {name for (name,) in db.query(Gift.name).all()}
    created = 0
    for sort_order, (name, description, coin_price, image_url) in enumerate(GIFTS, start=1):
        if name in existing:
            continue
        db.add(
            Gift(
                name=name,
                description=description,
                coin_price=coin_price,
                image_url=image_url,
                is_active=True,
                sort_order=sort_order,
            )
        )
        created += 1
    print(f"✅ 선물 시드 완료: {created}개 생성")


def seed_promo_codes(db):
    existing = {code for (code,) in db.query(DiscountCode.code).all()}
    now = datetime.now(timezone.utc)
    created = 0
    for code, discount_type, value, max_redemptions, min_amount, days, description in PROMO_CODES:
        if code in existing:
            continue
        db.add(
            DiscountCode(
                code=code,
                description=description,
                discount_type=discount_type,
                discount_value=value,
                code_type=CodeTypeEnum.PROMO,
                is_one_time_use=True,
                max_redemptions=max_redemptions,
                current_redemptions=0,
                min_purchase_amount=min_amount,
                expires_at=now + timedelta(days=days) if days else None,
                is_active=True,
            )
        )
        created += 1
    print(f"✅ 프로모션 코드 시드 완료: {created}개 생성")


def main():
    print("🌱 코인 경제 시드 데이터 생성 시작...")
    try:
        with get_db_context() as db:
            seed_coin_packages(db)
            seed_gifts(db)
            seed_promo_codes(db)
        print("🎉 모든 시드 데이터 생성 완료!")
    except Exception as e:
        print(f"❌ 시드 데이터 생성 실패: {e}")
        raise


if __name__ == "__main__":
    main()
