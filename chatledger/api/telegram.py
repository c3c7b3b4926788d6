import hmac
import logging

from fastapi import APIRouter, HTTPException, Request, status

from ..config import get_settings
from ..telegram.bot import handle_update

logger = logging.getLogger(__name__)

router = APIRouter()


def verify_secret(secret: str) -> None:
    settings = get_settings()
    expected = settings.telegram_webhook_secret
    if not expected or not hmac.compare_digest(secret, expected):
        logger.warning("Rejected Telegram webhook call with a wrong secret.")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


@router.post("/webhook/{secret}", status_code=status.HTTP_204_NO_CONTENT)
async def telegram_webhook(secret: str, request: Request) -> None:
    verify_secret(secret)
    try:
        payload = await request.json()
    except ValueError:
        logger.info("Ignoring Telegram webhook call without a JSON body.")
        return
    await handle_update(payload)
