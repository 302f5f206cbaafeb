from __future__ import annotations
import datetime
import logging
from fastapi import Depends, FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .settings import settings
from .logutil import setup_logging
from .models import InboundMessage, LineWebhookBody, Outcome
from .pipeline import AppendPipeline, build_pipeline
from .signature import verify_signature
from .middleware.size_limit import SizeLimitMiddleware

logger = logging.getLogger(__name__)

setup_logging(settings.log_level)

app = FastAPI(title="vaultline")
app.add_middleware(SizeLimitMiddleware)


def get_pipeline() -> AppendPipeline:
    return build_pipeline(settings)


def get_channel_secret() -> str:
    return settings.channel_secret


@app.post("/webhook")
async def webhook(
    request: Request,
    pipeline: AppendPipeline = Depends(get_pipeline),
    channel_secret: str = Depends(get_channel_secret),
):
    signature = request.headers.get("x-line-signature")
    body = request.scope.get("_cached_body")
    if body is None:
        body = await request.body()
    if not signature or not body:
        raise HTTPException(status_code=400, detail="Missing required headers or body")

    if not verify_signature(body, signature, channel_secret):
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        envelope = LineWebhookBody.model_validate_json(body)
    except ValidationError:
        logger.warning("ignoring delivery with an unreadable body")
        envelope = None

    event = envelope.events[0] if envelope is not None and envelope.events else None
    if event is None or not event.is_text_message() or not event.message.text.strip():
        return JSONResponse(
            {"status": Outcome.IGNORED.value, "detail": "Event ignored - not a text message"}
        )
    if len(envelope.events) > 1:
        logger.warning("delivery carried %d events; only the first is appended", len(envelope.events))

    message = InboundMessage.from_event(event)
    try:
        outcome = await pipeline.run(message)
    except Exception:
        logger.exception("LINE webhook processing failed")
        raise HTTPException(status_code=500, detail="Failed to process webhook")

    # duplicates are reported as processed so LINE stops redelivering
    return JSONResponse(
        {
            "status": Outcome.PROCESSED.value,
            "detail": "Message processed successfully",
            "duplicate": outcome == Outcome.DUPLICATE,
        }
    )


@app.get("/healthz")
async def healthz():
    return {"ok": True, "ts": datetime.datetime.now(datetime.timezone.utc).isoformat()}
