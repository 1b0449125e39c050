"""
Local stand-in for the hosted scheduler: hits the deadline check once a minute.

    python backend/scripts/local_cron.py
"""
import asyncio
from datetime import datetime
import httpx
from gitrekt.core.config import settings
from gitrekt.utils.logger import logger

INTERVAL_SECONDS = 60


async def check_deadlines(client: httpx.AsyncClient):
    headers = {}
    if settings.CRON_SECRET:
        headers["Authorization"] = f"Bearer {settings.CRON_SECRET}"

    response = await client.get(f"{settings.APP_URL}/cron/check-deadlines", headers=headers)
    response.raise_for_status()
    data = response.json()

    if data["processed"] > 0:
        logger.info(f"Processed {data['processed']} expired roast(s):")
        for result in data["results"]:
            logger.info(f"   - {result['repo']}: {', '.join(result['actions'])}")
    else:
        logger.info("No expired roasts to process")


async def main():
    logger.info(f"Local cron scheduler started, calling {settings.APP_URL}/cron/check-deadlines")
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        while True:
            logger.info(f"[{datetime.now().strftime('%H:%M:%S')}] Running deadline check...")
            try:
                await check_deadlines(client)
            except httpx.HTTPError as e:
                logger.error(f"Cron error: {e}")
            await asyncio.sleep(INTERVAL_SECONDS)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopping cron scheduler...")
