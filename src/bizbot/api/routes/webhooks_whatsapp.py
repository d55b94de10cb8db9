"""Inbound WhatsApp webhook.

Outcomes per call:
- 405 for any method but POST
- 500 when the payload cannot be parsed (nothing is sent)
- 200 otherwise, including unknown businesses and completion failures,
  which are answered with a fallback reply so the provider does not retry

Logs contain NO PII (sender, text): only hashes and lengths.
"""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from bizbot.observability.correlation import get_correlation_id
from bizbot.observability.logging import get_logger
from bizbot.observability.redaction import safe_log_context
from bizbot.services.relay_service import RelayPipeline
from bizbot.whatsapp.twilio_adapter import (
    InvalidPayloadError,
    is_status_callback,
    normalize,
    parse_body,
    unwrap_error_notification,
)

router = APIRouter(tags=["webhooks"])

logger = get_logger(__name__)

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _get_pipeline(request: Request) -> RelayPipeline:
    return request.app.state.pipeline


@router.api_route("/webhook", methods=_ALL_METHODS)
async def whatsapp_webhook(request: Request) -> PlainTextResponse:
    """Receive one provider message and relay a reply."""
    correlation_id = get_correlation_id()

    if request.method != "POST":
        logger.warning(
            "webhook method rejected",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id, method=request.method)},
        )
        return PlainTextResponse("Method Not Allowed", status_code=405)

    try:
        body = await request.body()
        payload = parse_body(body, request.headers.get("content-type"))
        payload = unwrap_error_notification(payload)

        if is_status_callback(payload):
            logger.info(
                "status callback acknowledged",
                extra={
                    "extra_fields": safe_log_context(
                        correlationId=correlation_id,
                        status=payload.get("MessageStatus") or payload.get("SmsStatus"),
                    )
                },
            )
            return PlainTextResponse("Status update acknowledged", status_code=200)

        message = normalize(payload)
    except InvalidPayloadError as e:
        logger.warning(
            "invalid webhook payload",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id, error=str(e))},
        )
        return PlainTextResponse("Internal Server Error", status_code=500)

    try:
        outcome = await _get_pipeline(request).handle(message)
    except Exception:
        logger.exception(
            "webhook processing failed",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return PlainTextResponse("Internal Server Error", status_code=500)

    logger.info(
        "webhook processed",
        extra={
            "extra_fields": safe_log_context(
                correlationId=correlation_id,
                reply_kind=outcome.reply_kind.value,
                send_status=outcome.send_result.status.value,
            )
        },
    )
    return PlainTextResponse("Message processed", status_code=200)
