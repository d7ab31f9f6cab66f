"""Main API router — aggregates all endpoint modules."""

from fastapi import APIRouter

from prompt_server.api.prompts import router as prompts_router

api_router = APIRouter()

api_router.include_router(prompts_router, prefix="/prompts", tags=["prompts"])
