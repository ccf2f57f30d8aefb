import json

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
from typing import Optional

from src.shortlinks.core.config import Settings, logger
from src.shortlinks.core.errors import AuthenticationError, RequestValidationFailed
from src.shortlinks.db.session import get_db
from src.shortlinks.schemas.url import URLCreate
from src.shortlinks.schemas.user import CurrentUser
from src.shortlinks.services.auth_service import TokenVerifier

bearer_scheme = HTTPBearer(auto_error=False)

__all__ = [
    "get_db",
    "get_settings",
    "get_token_verifier",
    "get_current_user",
    "get_url_create",
]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> CurrentUser:
    """
    Get the current authenticated user from the bearer token.

    Args:
        request: Incoming request, the user is stored on its state
        credentials: Parsed ``Authorization: Bearer`` header, if any
        verifier: Token verifier built for this app

    Returns:
        The authenticated user

    Raises:
        AuthenticationError: If the header is missing or the token is invalid
    """
    if credentials is None or not credentials.credentials.strip():
        logger.warning(f"Missing bearer token on {request.url.path}")
        raise AuthenticationError("Missing Bearer token")

    user = verifier.verify(credentials.credentials.strip())
    request.state.user = user
    return user


async def get_url_create(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
) -> URLCreate:
    """
    Parse the shorten request body, only once the caller is authenticated.

    An empty body counts as ``{}`` so the missing field is reported by name.

    Raises:
        RequestValidationFailed: If the body is not a JSON object
    """
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw.strip() else {}
        return URLCreate.model_validate(payload)
    except (ValueError, ValidationError):
        logger.warning(
            f"Rejected request body on {request.url.path} from user {current_user.id}"
        )
        raise RequestValidationFailed("Invalid request body")
