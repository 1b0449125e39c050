"""
Sweep trigger endpoints
Called by an external scheduler about once a minute
"""
import hmac
from typing import Optional
from fastapi import APIRouter, Header, HTTPException
from gitrekt.core.config import settings
from gitrekt.services.roast_lifecycle_service import roast_lifecycle
from gitrekt.utils.logger import logger

router = APIRouter()


def verify_cron_secret(authorization: Optional[str]):
    """No CRON_SECRET configured means the endpoint is open (local development)"""
    if not settings.CRON_SECRET:
        return
    expected = f"Bearer {settings.CRON_SECRET}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.get("/cron/check-deadlines")
async def check_deadlines(authorization: Optional[str] = Header(None)):
    verify_cron_secret(authorization)

    try:
        result = await roast_lifecycle.run_sweep()
    except Exception as e:
        logger.error(f"[Sweep] Cron job error: {e}", exc_info=True)
        raise HTTPException(500, "Failed to process deadlines")

    return {
        "success": True,
        "processed": result.processed,
        "results": [item.model_dump() for item in result.results],
        "timestamp": result.timestamp.isoformat(),
    }


@router.get("/process-expired-roasts")
async def process_expired_roasts(authorization: Optional[str] = Header(None)):
    verify_cron_secret(authorization)

    try:
        processed = await roast_lifecycle.sweep_expired()
    except Exception as e:
        logger.error(f"[Sweep] Error processing expired roasts: {e}", exc_info=True)
        raise HTTPException(500, "Failed")

    return {"success": True, "processed": processed}
