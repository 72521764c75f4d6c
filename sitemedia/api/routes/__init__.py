from fastapi import APIRouter

from sitemedia.api.routes import media

api_router = APIRouter()


@api_router.get("/health", tags=["health"])
def health() -> dict:
    return {"status": "ok"}


api_router.include_router(media.router)
