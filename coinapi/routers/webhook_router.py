"""
결제 게이트웨이 웹훅

서명이 유효하지 않으면 401을 돌려주고, 그 외에는 내부 처리 결과와 상관없이
항상 200 {"received": true}로 응답합니다. 처리 오류는 이벤트 종류와
게이트웨이 식별자를 포함해 로그로만 남깁니다.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request

from coinapi.config import settings
from coinapi.core.exceptions import WebhookSignatureError
from coinapi.deps import get_purchase_service
from coinapi.providers.payment.events import parse_payment_event, verify_webhook_signature
from coinapi.schemas.payment import WebhookAckResponse
from coinapi.services.purchase_service import PurchaseService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("/payments", response_model=WebhookAckResponse)
async def handle_payment_webhook(
    request: Request,
    purchase_service: PurchaseService = Depends(get_purchase_service),
) -> WebhookAckResponse:
    raw_body = await request.body()

    if not verify_webhook_signature(
        raw_body,
        request.headers,
        settings.PAYMENT_WEBHOOK_SECRET,
        tolerance_seconds=settings.PAYMENT_WEBHOOK_TOLERANCE_SECONDS,
    ):
        logger.warning("Rejected payment webhook with invalid signature")
        raise WebhookSignatureError()

    try:
        payload = json.loads(raw_body or b"{}")
    except ValueError:
        logger.error(f"Payment webhook body is not valid JSON: {raw_body[:200]!r}")
        return WebhookAckResponse()

    if not isinstance(payload, dict):
        logger.error(f"Payment webhook body is not an object: {type(payload).__name__}")
        return WebhookAckResponse()

    event = parse_payment_event(payload)
    try:
        result = purchase_service.apply_webhook(event)
        logger.info(
            f"Payment webhook {event.event_type} processed: {result.outcome.value} "
            f"(purchase {result.purchase_id}, payment_id={event.payment_id}, "
            f"session_id={event.session_id})"
        )
    except Exception as e:
        logger.error(
            f"Payment webhook {event.event_type} failed "
            f"(payment_id={event.payment_id}, session_id={event.session_id}): {str(e)}",
            exc_info=True,
        )

    return WebhookAckResponse()
