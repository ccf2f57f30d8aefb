from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.shortlinks.api.deps import (
    get_current_user,
    get_db,
    get_settings,
    get_url_create,
)
from src.shortlinks.core.config import Settings
from src.shortlinks.schemas.url import (
    DeleteResponse,
    ShortenResponse,
    URLCreate,
    URLList,
)
from src.shortlinks.schemas.user import CurrentUser
from src.shortlinks.services.url_service import (
    create_short_url,
    delete_user_url,
    list_user_urls,
)

router = APIRouter()


@router.get("/urls", response_model=URLList)
async def list_links(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    List the caller's shortened URLs, newest first.

    Requires authentication.
    """
    return {"urls": await list_user_urls(db, current_user.id)}


# Body parsed in get_url_create, after authentication
@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": URLCreate.model_json_schema(by_alias=True)
                }
            },
        }
    },
)
async def create_link(
    current_user: CurrentUser = Depends(get_current_user),
    url: URLCreate = Depends(get_url_create),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Create a shortened URL.

    Requires authentication. Fails with 403 once the caller owns
    URL_QUOTA_PER_USER links.
    """
    db_url = await create_short_url(db, url.original_url, current_user.id, settings)
    return {"url": db_url}


@router.delete("/urls/{url_id}", response_model=DeleteResponse)
async def delete_link(
    url_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Delete one of the caller's shortened URLs.

    Requires authentication.
    """
    deleted_id = await delete_user_url(db, url_id, current_user.id)
    return DeleteResponse(deleted_id=deleted_id)
