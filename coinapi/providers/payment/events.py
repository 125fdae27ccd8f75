"""
결제 웹훅 이벤트 어댑터

게이트웨이마다, 또 이벤트 종류마다 페이로드 모양이 조금씩 다릅니다.
- 이벤트 종류: event_type 또는 type
- 본문: data 아래에 중첩되거나 최상위에 평평하게
- 세션 ID: checkout_session_id 또는 session_id
- 상태: status 또는 payment_status
- 실패 사유: failure_reason 또는 error_message

여기서 한 가지 내부 형태(PaymentEvent)로 정규화한 뒤 정산 서비스에 넘깁니다.
"""

import base64
import hashlib
import hmac
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

SUCCESS_EVENT_TYPES = {"payment.succeeded"}
FAILURE_EVENT_TYPES = {"payment.failed"}
SUCCESS_STATUSES = {"succeeded", "paid"}
FAILURE_STATUSES = {"failed"}

# 서명 타임스탬프 허용 오차 (초)
WEBHOOK_TOLERANCE_SECONDS = 300


class PaymentEventKind(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    OTHER = "OTHER"


@dataclass(frozen=True)
class PaymentEvent:
    event_type: Optional[str]
    kind: PaymentEventKind
    payment_id: Optional[str] = None
    session_id: Optional[str] = None
    status: Optional[str] = None
    failure_reason: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


def _first(data: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return None


def classify(event_type: Optional[str], status: Optional[str]) -> PaymentEventKind:
    normalized = (status or "").lower()
    if event_type in SUCCESS_EVENT_TYPES or normalized in SUCCESS_STATUSES:
        return PaymentEventKind.SUCCEEDED
    if event_type in FAILURE_EVENT_TYPES or normalized in FAILURE_STATUSES:
        return PaymentEventKind.FAILED
    return PaymentEventKind.OTHER


def parse_payment_event(payload: Mapping[str, Any]) -> PaymentEvent:
    event_type = _first(payload, "event_type", "type")
    data = payload.get("data")
    if not isinstance(data, Mapping):
        data = payload

    status = _first(data, "status", "payment_status")
    return PaymentEvent(
        event_type=event_type,
        kind=classify(event_type, status),
        payment_id=_first(data, "payment_id"),
        session_id=_first(data, "checkout_session_id", "session_id"),
        status=status,
        failure_reason=_first(data, "failure_reason", "error_message"),
        payload=dict(payload),
    )


def verify_webhook_signature(
    raw_body: bytes,
    headers: Mapping[str, str],
    secret: Optional[str],
    tolerance_seconds: int = WEBHOOK_TOLERANCE_SECONDS,
    now: Optional[float] = None,
) -> bool:
    """Standard Webhooks 방식의 HMAC-SHA256 서명 검증

    서명 대상은 "{webhook-id}.{webhook-timestamp}.{body}" 이고,
    webhook-signature 헤더에는 공백으로 구분된 "v1,<base64>" 항목이 들어 있습니다.
    webhook-timestamp가 현재 시각에서 tolerance_seconds 이상 벗어나면 재전송 공격으로
    보고 거부합니다. secret이 설정되지 않았으면 검증을 생략합니다 (개발 환경).
    """
    if not secret:
        return True

    webhook_id = headers.get("webhook-id")
    timestamp = headers.get("webhook-timestamp")
    signature_header = headers.get("webhook-signature")
    if not webhook_id or not timestamp or not signature_header:
        return False

    try:
        sent_at = int(timestamp)
    except ValueError:
        return False
    current = time.time() if now is None else now
    if abs(current - sent_at) > tolerance_seconds:
        return False

    key = secret
    if key.startswith("whsec_"):
        key_bytes = base64.b64decode(key[len("whsec_"):])
    else:
        key_bytes = key.encode("utf-8")

    signed = f"{webhook_id}.{timestamp}.".encode("utf-8") + raw_body
    expected = base64.b64encode(
        hmac.new(key_bytes, signed, hashlib.sha256).digest()
    ).decode("utf-8")

    for entry in signature_header.split():
        version, _, signature = entry.partition(",")
        if version == "v1" and hmac.compare_digest(signature, expected):
            return True
    return False
