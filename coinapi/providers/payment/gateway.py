import httpx
import logging
from dataclasses import dataclass
from typing import Optional

from coinapi.config import Settings
from coinapi.core.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    checkout_url: str


class PaymentGatewayClient:
    """결제 게이트웨이 체크아웃 세션 클라이언트

    프로세스당 하나의 인스턴스가 컨테이너에서 생성되고, 애플리케이션 종료 시
    lifespan에서 aclose()로 커넥션 풀을 닫습니다.
    """

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.name = settings.PAYMENT_GATEWAY_NAME
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")
        self._client = client or httpx.AsyncClient(
            base_url=settings.PAYMENT_GATEWAY_BASE_URL,
            timeout=settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
            headers={
                "Authorization": f"Bearer {settings.PAYMENT_GATEWAY_API_KEY}",
                "Content-Type": "application/json",
            },
        )

    def return_url(self, order_id: str) -> str:
        return f"{self.frontend_url}/coins/success?orderId={order_id}"

    async def create_checkout_session(
        self,
        product_id: str,
        order_id: str,
        customer_email: str,
        customer_name: str,
    ) -> CheckoutSession:
        """상품 1개짜리 체크아웃 세션 생성"""
        payload = {
            "product_cart": [{"product_id": product_id, "quantity": 1}],
            "customer": {"email": customer_email, "name": customer_name},
            "return_url": self.return_url(order_id),
            "metadata": {"order_id": order_id},
        }
        try:
            response = await self._client.post("/checkouts", json=payload)
        except httpx.TimeoutException:
            logger.error(f"Checkout session timeout for order {order_id}")
            raise PaymentGatewayError("Payment gateway timeout")
        except httpx.HTTPError as e:
            logger.error(f"Checkout session request failed for order {order_id}: {str(e)}")
            raise PaymentGatewayError("Failed to create checkout session")

        if response.status_code >= 400:
            logger.error(
                f"Checkout session rejected for order {order_id}: "
                f"{response.status_code} {response.text}"
            )
            raise PaymentGatewayError(
                "Failed to create checkout session",
                details={"status_code": response.status_code},
            )

        data = response.json()
        session_id = data.get("session_id") or data.get("id")
        checkout_url = data.get("checkout_url") or data.get("url")
        if not session_id or not checkout_url:
            logger.error(f"Invalid checkout session response for order {order_id}: {data}")
            raise PaymentGatewayError("Invalid checkout session response")

        return CheckoutSession(session_id=session_id, checkout_url=checkout_url)

    async def aclose(self) -> None:
        await self._client.aclose()
