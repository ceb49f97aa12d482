"""Gitea Slack Notifier - FastAPI Application.

Receives Gitea pull-request webhooks and posts a notification for each one to
a Slack channel, threading follow-ups under the first message of the PR.
"""

import hashlib
import hmac
import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, HTTPException, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .config import get_settings
from .events import ACTION_NAMES, parse_event
from .identity import GiteaDirectory
from .models import init_db, get_db
from .notifier import DeliveryError, SlackNotifier
from .pipeline import post_notification
from .renderer import MalformedRepositoryName
from .threads import get_thread_ts, remember_thread

# Configure logging
settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

directory = GiteaDirectory()
notifier = SlackNotifier()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Gitea Slack Notifier...")
    init_db()
    yield
    await directory.aclose()
    logger.info("Gitea Slack Notifier stopped")


app = FastAPI(
    title="Gitea Slack Notifier",
    description="Pull-request notifications from Gitea to Slack",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


def verify_gitea_signature(payload: bytes, signature: str, secret: str) -> bool:
    """Verify Gitea webhook signature."""
    if not secret:
        return True  # Skip verification if no secret configured
    expected = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


@app.post("/webhooks/gitea")
async def gitea_webhook(request: Request, db: Session = Depends(get_db)):
    """Handle Gitea pull-request webhook events."""
    # Read body before parsing (for signature verification)
    body = await request.body()

    signature = request.headers.get("X-Gitea-Signature", "")
    if not verify_gitea_signature(body, signature, settings.gitea_webhook_secret):
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON")

    action = payload.get("action") if isinstance(payload, dict) else None
    if isinstance(action, str) and action not in ACTION_NAMES:
        logger.info(f"Ignoring unsupported Gitea action: {action}")
        raise HTTPException(status_code=422, detail=f"Unsupported action: {action}")

    try:
        event = parse_event(payload)
    except ValidationError as e:
        logger.warning(f"Rejected Gitea webhook: {e.error_count()} validation errors")
        raise HTTPException(
            status_code=422,
            detail=[
                {"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()
            ],
        )

    parent_ts = get_thread_ts(db, event)

    try:
        thread_ts = await post_notification(
            event, parent_ts, directory=directory, notifier=notifier
        )
    except MalformedRepositoryName as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DeliveryError as e:
        logger.error(f"Gitea webhook: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    if thread_ts is None:
        return {"status": "skipped", "action": event.action.name}

    if parent_ts is None:
        remember_thread(db, event, thread_ts)
    logger.info(
        f"Gitea webhook: {event.action.name} on {event.repository.full_name} "
        f"PR {event.pull_request.id} -> {thread_ts}"
    )
    return {"status": "sent", "action": event.action.name, "ts": thread_ts}
