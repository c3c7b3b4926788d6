from fastapi import APIRouter

from . import chats, telegram

api_router = APIRouter()
api_router.include_router(chats.router, prefix="/chats", tags=["chats"])
api_router.include_router(telegram.router, prefix="/telegram", tags=["telegram"])
