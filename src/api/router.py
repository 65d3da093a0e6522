from fastapi import APIRouter

from src.api.slack import router as slack_router

api_router = APIRouter()
api_router.include_router(slack_router)
