"""API routes."""
from fastapi import APIRouter

from vig.api import audio, auth, caption, payments, users

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(audio.router, prefix="/audio", tags=["Audio"])
api_router.include_router(caption.router, prefix="/caption", tags=["Captions"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
