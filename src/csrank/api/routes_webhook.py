"""
MatchZy webhook route handler.

Endpoints:
- POST /api/matchzy/webhook - ingest a MatchZy event
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from csrank.api.shared import WebhookResponse, get_document_store
from csrank.exceptions import MalformedEventError
from csrank.infra.database import DocumentStore
from csrank.pipeline.ingestion import MatchIngestor, parse_event

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


@router.post("/api/matchzy/webhook", response_model=None)
async def matchzy_webhook(
    request: Request,
    store: DocumentStore = Depends(get_document_store),
) -> WebhookResponse | JSONResponse:
    """Receive a MatchZy event.

    Any well-formed event is acknowledged with success, including unknown
    event types, so MatchZy does not keep redelivering it. Failures inside
    aggregate updates are logged by the pipeline and never reach this level.
    """
    body = await request.body()
    logger.debug(f"Received MatchZy webhook: {body[:4096]!r}")

    try:
        data = parse_event(body)
        ingestor = MatchIngestor(store)
        outcome = await asyncio.to_thread(ingestor.handle_event, data)
    except MalformedEventError as e:
        logger.error(f"Rejected malformed webhook: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    except Exception:
        logger.exception("Error processing webhook")
        return JSONResponse(status_code=500, content={"error": "Failed to process webhook"})

    logger.info(f"Webhook {data['event']} handled ({outcome})")
    return WebhookResponse(success=True)
