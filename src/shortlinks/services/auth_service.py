from datetime import datetime, timedelta, UTC
from typing import Optional

from jose import jwt, JWTError

from src.shortlinks.core.config import Settings, logger
from src.shortlinks.core.errors import AuthenticationError
from src.shortlinks.schemas.user import CurrentUser


class TokenVerifier:
    """
    Validates bearer tokens issued by the identity provider.

    Tokens are HS256 JWTs signed with the provider's secret. ``sub`` carries
    the user ID and ``email`` the user's address.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = None,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.audience = audience or None

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenVerifier":
        return cls(
            secret=settings.JWT_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            audience=settings.JWT_AUDIENCE,
        )

    def verify(self, token: str) -> CurrentUser:
        """
        Resolve a token to the user it was issued for.

        Args:
            token: Raw bearer token

        Returns:
            The authenticated user

        Raises:
            AuthenticationError: If the token is malformed, expired or has no subject
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
        except JWTError as e:
            logger.warning(f"JWT validation error: {str(e)}")
            raise AuthenticationError("Invalid or expired token")

        user_id = payload.get("sub")
        if not user_id:
            logger.warning("Token has no subject claim")
            raise AuthenticationError("Invalid or expired token")

        return CurrentUser(id=str(user_id), email=payload.get("email"))


def create_access_token(
    settings: Settings,
    subject: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token the way the identity provider would.

    Args:
        settings: Supplies secret, algorithm, audience and default lifetime
        subject: User ID to encode as ``sub``
        email: Optional email claim
        expires_delta: Optional lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": subject, "exp": datetime.now(UTC) + expires_delta}
    if email:
        to_encode["email"] = email
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
