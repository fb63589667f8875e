# app/api/api_router.py
from fastapi import APIRouter
from app.api.v1 import auth, users, chat, intents, quick_actions, files

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/v1/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/v1/users", tags=["users"])
api_router.include_router(chat.router, prefix="/v1/chat", tags=["chat"])
api_router.include_router(intents.router, prefix="/v1/intents", tags=["intents"])
api_router.include_router(quick_actions.router, prefix="/v1/quick-actions", tags=["quick-actions"])
api_router.include_router(files.router, prefix="/v1/files", tags=["files"])
