from datetime import date, datetime, time, timedelta
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..db import get_db
from ..models.chat import Chat
from ..models.transaction import TransactionKind
from ..schemas.settlement import Settlement
from ..schemas.transaction import TransactionRead
from ..services import get_chat, list_transactions, settle_chat
from ..services.categories import chat_timezone

router = APIRouter()

SessionDep = Annotated[AsyncSession, Depends(get_db)]


async def _load_chat(session: AsyncSession, chat_id: int) -> Chat:
    chat = await get_chat(session, chat_id)
    if chat is None:
        raise HTTPException(status_code=404, detail="Chat not found")
    return chat


def _local_bounds(
    chat: Chat, start: Optional[date], end: Optional[date]
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Turn inclusive local dates into ``[start, end)`` datetimes in the chat's timezone."""
    tz = chat_timezone(chat, get_settings().ledger_config())
    start_at = datetime.combine(start, time.min, tzinfo=tz) if start else None
    end_at = datetime.combine(end + timedelta(days=1), time.min, tzinfo=tz) if end else None
    return start_at, end_at


@router.get("/{chat_id}/transactions", response_model=list[TransactionRead])
async def list_chat_transactions_endpoint(
    chat_id: int,
    session: SessionDep,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
    kind: Optional[TransactionKind] = Query(default=None),
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
) -> list[TransactionRead]:
    chat = await _load_chat(session, chat_id)
    start_at, end_at = _local_bounds(chat, start, end)
    transactions = await list_transactions(
        session,
        chat.telegram_id,
        kind=kind,
        start=start_at,
        end=end_at,
        limit=limit,
        offset=offset,
    )
    return [TransactionRead.model_validate(tx) for tx in transactions]


@router.get("/{chat_id}/settlement", response_model=Settlement)
async def chat_settlement_endpoint(
    chat_id: int,
    session: SessionDep,
    start: Optional[date] = Query(default=None),
    end: Optional[date] = Query(default=None),
) -> Settlement:
    chat = await _load_chat(session, chat_id)
    if (start is None) != (end is None):
        raise HTTPException(status_code=400, detail="Provide both start and end, or neither.")
    if start and end and end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    start_at, end_at = _local_bounds(chat, start, end)
    return await settle_chat(session, chat, get_settings().ledger_config(), start=start_at, end=end_at)
