"""
GitHub webhook endpoint
Receives push, workflow_run and repository events
"""
import json
from typing import Optional
from fastapi import APIRouter, Header, Request, HTTPException
from gitrekt.core.errors import InvalidSignature
from gitrekt.services.github_service import github_service
from gitrekt.services.webhook_service import webhook_service
from gitrekt.utils.logger import logger


router = APIRouter()

@router.post("")
async def github_webhook(
    request: Request,
    x_github_event: Optional[str] = Header(None),
    x_hub_signature_256: Optional[str] = Header(None)
):
    """
    Handle GitHub webhook events
    Verifies the signature over the raw body before parsing anything
    """
    if not github_service.webhook_secret:
        logger.error("[Webhook] GITHUB_WEBHOOK_SECRET is not configured")
        raise HTTPException(status_code=500, detail="Server config error")

    # Read raw body for signature verification
    body = await request.body()

    try:
        webhook_service.verify(body, x_hub_signature_256)
    except InvalidSignature as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    try:
        return await webhook_service.handle_event(x_github_event, payload)
    except Exception as e:
        logger.error(f"[Webhook] Error handling {x_github_event} event: {e}", exc_info=True)
        raise HTTPException(500, "Failed to process webhook")
