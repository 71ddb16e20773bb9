from fastapi import APIRouter
from tourbot.api.endpoints import chat, vocabulary

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(chat.router)
api_router.include_router(vocabulary.router)
