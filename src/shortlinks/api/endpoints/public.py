from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.shortlinks.api.deps import get_db
from src.shortlinks.services.url_service import resolve_short_code

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/{short_code}")
async def redirect_to_url(short_code: str, db: AsyncSession = Depends(get_db)):
    original_url = await resolve_short_code(db, short_code)
    return RedirectResponse(original_url, status_code=status.HTTP_302_FOUND)
