import base64
import hashlib
import hmac
import json
import time
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from coinapi.config import settings
from coinapi.core.exceptions import InsufficientBalanceError, SelfGiftError
from coinapi.core.security import create_access_token
from coinapi.database.session import get_db
from coinapi.main import create_app
from coinapi.models.discount import CodeTypeEnum
from coinapi.routers import discount_router, payment_router, webhook_router
from coinapi.schemas.discount import DiscountErrorCode, DiscountValidationResponse
from coinapi.schemas.payment import CheckoutSessionResponse, WebhookOutcome, WebhookResult
from coinapi.schemas.user import User as UserSchema
from coinapi.schemas.wallet import WalletResponse
from coinapi.services.gift_service import GiftService
from coinapi.services.wallet_service import WalletService


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def current_user():
    return UserSchema(id=1, email="viewer@example.com", nickname="viewer")


@pytest.fixture
def client(app, current_user):
    """인증된 사용자로 호출하는 테스트 클라이언트"""
    app.dependency_overrides[payment_router.get_current_active_user] = lambda: current_user
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def no_webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", None)


class TestPaymentRoutes:
    def test_get_my_wallet(self, app, client):
        # Given
        service = Mock()
        service.get_wallet.return_value = WalletResponse(
            user_id=1, balance=250, total_earned=70, total_spent=100
        )
        app.dependency_overrides[payment_router.get_wallet_service] = lambda: service

        # When
        response = client.get("/api/v1/payment/wallet")

        # Then
        assert response.status_code == 200
        assert response.json()["balance"] == 250
        service.get_wallet.assert_called_once_with(1)

    def test_wallet_requires_authentication(self, app):
        response = TestClient(app).get("/api/v1/payment/wallet")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        error = response.json()["error"]
        assert error["code"] == "AUTH_001"
        assert error["message"] == "Authentication required"

    def test_wallet_with_bearer_token(self, app, db, factory):
        user = factory.user(nickname="holder")
        token = create_access_token({"sub": user.email, "user_id": user.id})

        def override_db():
            yield db

        app.dependency_overrides[get_db] = override_db

        response = TestClient(app).get(
            "/api/v1/payment/wallet", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == user.id
        assert body["balance"] == 0

    def test_invalid_token_is_rejected(self, app):
        response = TestClient(app).get(
            "/api/v1/payment/wallet", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Invalid or expired token"

    def test_create_purchase(self, app, client, current_user):
        service = Mock()
        service.open_purchase = AsyncMock(
            return_value=CheckoutSessionResponse(
                purchase_id=7,
                order_id="order_1_1_abcd",
                session_id="cs_1",
                checkout_url="https://checkout.test/cs_1",
                total_coins=650,
                amount=49900,
                currency="INR",
            )
        )
        app.dependency_overrides[payment_router.get_purchase_service] = lambda: service

        response = client.post(
            "/api/v1/payment/purchase", json={"package_id": 3, "discount_code": "WELCOME20"}
        )

        assert response.status_code == 200
        assert response.json()["checkout_url"] == "https://checkout.test/cs_1"
        service.open_purchase.assert_awaited_once_with(current_user, 3, discount_code="WELCOME20")

    def test_packages_through_container(self, app, client, db, factory, mock_gateway):
        factory.package(name="Mega Pack", coins=1200, bonus_coins=200, sort_order=2)
        factory.package(name="Starter Pack", sort_order=1)
        factory.package(name="Retired Pack", is_active=False)

        def override_db():
            yield db

        app.dependency_overrides[get_db] = override_db

        with app.container.gateways.payment_gateway.override(mock_gateway):
            response = client.get("/api/v1/payment/packages")

        assert response.status_code == 200
        body = response.json()
        assert body["total_count"] == 2
        assert [p["name"] for p in body["packages"]] == ["Starter Pack", "Mega Pack"]
        assert body["packages"][1]["total_coins"] == 1400

    def test_purchase_rejects_invalid_package_id(self, app, client):
        service = Mock()
        app.dependency_overrides[payment_router.get_purchase_service] = lambda: service

        response = client.post("/api/v1/payment/purchase", json={"package_id": 0})

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"

    def test_self_gift_error_shape(self, app, client):
        service = Mock()
        service.send_gift.side_effect = SelfGiftError()
        app.dependency_overrides[payment_router.get_gift_service] = lambda: service

        response = client.post("/api/v1/payment/gift", json={"receiver_id": 1, "gift_id": 2})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "SELF_GIFT"

    def test_insufficient_balance_error(self, app, client):
        service = Mock()
        service.send_gift.side_effect = InsufficientBalanceError(
            "Insufficient balance. Required: 100, Available: 50",
            details={"required": 100, "available": 50},
        )
        app.dependency_overrides[payment_router.get_gift_service] = lambda: service

        response = client.post("/api/v1/payment/gift", json={"receiver_id": 2, "gift_id": 2})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "INSUFFICIENT_BALANCE"
        assert error["details"] == {"required": 100, "available": 50}

    def test_history_limit_is_clamped(self, app, client):
        service = Mock()
        service.get_gifts_sent.return_value = {
            "gifts": [],
            "pagination": {"limit": 100, "offset": 0, "total_count": 0, "has_next": False},
        }
        app.dependency_overrides[payment_router.get_gift_service] = lambda: service

        response = client.get("/api/v1/payment/gifts-sent?limit=500")

        assert response.status_code == 200
        service.get_gifts_sent.assert_called_once_with(1, 100, 0)


class TestDiscountRoutes:
    def test_validate_failure_returns_400(self, app, client):
        service = Mock()
        service.validate.return_value = DiscountValidationResponse.fail(
            DiscountErrorCode.EXPIRED_CODE, "This code has expired"
        )
        app.dependency_overrides[discount_router.get_discount_service] = lambda: service

        response = client.post(
            "/api/v1/discount/validate", json={"code": " welcome20 ", "package_id": 1}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "EXPIRED_CODE"
        service.validate.assert_called_once_with("WELCOME20", 1, 1)


class TestWebhookRoutes:
    body = {"event_type": "payment.succeeded", "data": {"payment_id": "pay_1"}}

    def test_ack_even_when_processing_fails(self, app, client, no_webhook_secret):
        service = Mock()
        service.apply_webhook.side_effect = RuntimeError("database is down")
        app.dependency_overrides[webhook_router.get_purchase_service] = lambda: service

        response = client.post("/api/v1/webhook/payments", json=self.body)

        assert response.status_code == 200
        assert response.json() == {"received": True}
        service.apply_webhook.assert_called_once()

    def test_ack_for_malformed_body(self, app, client, no_webhook_secret):
        service = Mock()
        app.dependency_overrides[webhook_router.get_purchase_service] = lambda: service

        response = client.post(
            "/api/v1/webhook/payments",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        service.apply_webhook.assert_not_called()

    def test_invalid_signature_is_rejected(self, app, client, monkeypatch):
        monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", "topsecret")
        service = Mock()
        app.dependency_overrides[webhook_router.get_purchase_service] = lambda: service

        response = client.post(
            "/api/v1/webhook/payments",
            json=self.body,
            headers={
                "webhook-id": "msg_1",
                "webhook-timestamp": str(int(time.time())),
                "webhook-signature": "v1,Zm9yZ2Vk",
            },
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "WEBHOOK_SIGNATURE"
        service.apply_webhook.assert_not_called()

    def signed_post(self, client, timestamp: str):
        raw = json.dumps(self.body).encode()
        signature = base64.b64encode(
            hmac.new(
                b"topsecret", f"msg_1.{timestamp}.".encode() + raw, hashlib.sha256
            ).digest()
        ).decode()

        return client.post(
            "/api/v1/webhook/payments",
            content=raw,
            headers={
                "Content-Type": "application/json",
                "webhook-id": "msg_1",
                "webhook-timestamp": timestamp,
                "webhook-signature": f"v1,{signature}",
            },
        )

    def test_signed_event_is_applied(self, app, client, monkeypatch):
        monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", "topsecret")
        service = Mock()
        service.apply_webhook.return_value = WebhookResult(
            outcome=WebhookOutcome.COMPLETED, purchase_id=1, credited_coins=100
        )
        app.dependency_overrides[webhook_router.get_purchase_service] = lambda: service

        response = self.signed_post(client, str(int(time.time())))

        assert response.status_code == 200
        event = service.apply_webhook.call_args.args[0]
        assert event.payment_id == "pay_1"

    def test_replayed_signed_event_is_rejected(self, app, client, monkeypatch):
        monkeypatch.setattr(settings, "PAYMENT_WEBHOOK_SECRET", "topsecret")
        service = Mock()
        app.dependency_overrides[webhook_router.get_purchase_service] = lambda: service

        response = self.signed_post(client, str(int(time.time()) - 3600))

        assert response.status_code == 401
        service.apply_webhook.assert_not_called()


class TestReadRoutes:
    """조회 엔드포인트 - 실제 서비스와 SQLite 세션으로 호출"""

    @pytest.fixture
    def me(self, app, db, factory, mock_gateway):
        user = factory.creator()
        schema = UserSchema.model_validate(user)

        def override_db():
            yield db

        app.dependency_overrides[get_db] = override_db
        app.dependency_overrides[payment_router.get_current_active_user] = lambda: schema
        app.container.gateways.payment_gateway.override(mock_gateway)
        yield user
        app.container.gateways.payment_gateway.reset_override()
        app.dependency_overrides.clear()

    def test_my_codes(self, app, me, factory):
        factory.discount_code(code="REWARD-MINE000000", owner_id=me.id, code_type=CodeTypeEnum.REWARD)
        factory.discount_code(code="SOMEONEELSE", owner_id=factory.user().id)

        response = TestClient(app).get("/api/v1/discount/my-codes")

        assert response.status_code == 200
        body = response.json()
        assert body["total_count"] == 1
        assert body["codes"][0]["code"] == "REWARD-MINE000000"
        assert body["codes"][0]["is_used_by_user"] is False

    def test_latest_reward(self, app, me, factory):
        client = TestClient(app)
        assert client.get("/api/v1/discount/latest-reward").json() == {"reward_code": None}

        factory.discount_code(code="REWARD-LATEST0000", owner_id=me.id, code_type=CodeTypeEnum.REWARD)

        response = client.get("/api/v1/discount/latest-reward")

        assert response.status_code == 200
        assert response.json()["reward_code"]["code"] == "REWARD-LATEST0000"

    def test_purchase_history(self, app, me, factory):
        package = factory.package()
        factory.purchase(me, package, checkout_session_id="cs_a")
        factory.purchase(me, package, checkout_session_id="cs_b")

        response = TestClient(app).get("/api/v1/payment/purchases?limit=1")

        assert response.status_code == 200
        body = response.json()
        assert len(body["purchases"]) == 1
        assert body["pagination"] == {"limit": 1, "offset": 0, "total_count": 2, "has_next": True}

    def test_purchase_by_order_id(self, app, me, factory):
        purchase = factory.purchase(me, factory.package())
        client = TestClient(app)

        response = client.get(f"/api/v1/payment/purchases/{purchase.order_id}")

        assert response.status_code == 200
        assert response.json()["status"] == "PENDING"
        assert response.json()["order_id"] == purchase.order_id

        missing = client.get("/api/v1/payment/purchases/order_missing")
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "NOT_FOUND_001"

    def test_gift_catalog(self, app, me, factory):
        factory.gift(name="Heart", coin_price=10)
        factory.gift(name="Retired", is_active=False)

        response = TestClient(app).get("/api/v1/payment/gifts")

        assert response.status_code == 200
        body = response.json()
        assert body["total_count"] == 1
        assert body["gifts"][0]["name"] == "Heart"

    def test_gifts_received(self, app, me, db, factory):
        sender = factory.user()
        gift = factory.gift(coin_price=100)
        WalletService(db).credit(sender.id, 100)
        GiftService(db).send_gift(sender.id, me.id, gift.id, message="hi")

        response = TestClient(app).get("/api/v1/payment/gifts-received")

        assert response.status_code == 200
        body = response.json()
        assert body["pagination"]["total_count"] == 1
        assert body["gifts"][0]["sender_id"] == sender.id
        assert body["gifts"][0]["coin_amount"] == 100
        assert body["gifts"][0]["message"] == "hi"


class TestHealthRoute:
    def test_healthy(self, app):
        session = Mock()

        def override():
            yield session

        app.dependency_overrides[get_db] = override

        response = TestClient(app).get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "ok"

    def test_unhealthy_database(self, app):
        session = Mock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("refused"))

        def override():
            yield session

        app.dependency_overrides[get_db] = override

        response = TestClient(app).get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["database"] == "unreachable"
