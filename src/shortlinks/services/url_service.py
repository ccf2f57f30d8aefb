from typing import Any, Callable, List, Optional

from pydantic import AnyUrl, TypeAdapter, ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.shortlinks.core.config import Settings, logger
from src.shortlinks.core.errors import (
    AllocationExhaustedError,
    DataIntegrityError,
    NotFoundError,
    QuotaExceededError,
    RequestValidationFailed,
)
from src.shortlinks.models.url import URL
from src.shortlinks.services.shortcode import generate_short_code, pick_code_length

UNIQUE_VIOLATION_MARKERS = ("duplicate", "unique")

# WHATWG parsing; the submitted string is stored as-is, not the normalised form
ABSOLUTE_URL = TypeAdapter(AnyUrl)


def validate_original_url(raw: Any) -> str:
    """
    Check a submitted URL before any allocation work happens.

    Args:
        raw: Value of ``originalUrl`` from the request body

    Returns:
        The trimmed URL, otherwise unchanged

    Raises:
        RequestValidationFailed: If the value is missing, unparseable or not http(s)
    """
    original_url = raw.strip() if isinstance(raw, str) else ""
    if not original_url:
        raise RequestValidationFailed("originalUrl is required")

    try:
        parsed = ABSOLUTE_URL.validate_python(original_url)
    except ValidationError:
        raise RequestValidationFailed("originalUrl must be a valid URL")

    if parsed.scheme not in ("http", "https"):
        raise RequestValidationFailed("originalUrl must be http(s)")

    return original_url


def is_unique_violation(error: IntegrityError) -> bool:
    message = str(error.orig if error.orig is not None else error).lower()
    return any(marker in message for marker in UNIQUE_VIOLATION_MARKERS)


async def get_url_by_short_code(db: AsyncSession, short_code: str) -> Optional[URL]:
    result = await db.execute(select(URL).where(URL.short_code == short_code))
    return result.scalars().first()


async def count_user_urls(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(URL).where(URL.user_id == user_id)
    )
    return result.scalar_one()


async def ensure_quota(db: AsyncSession, user_id: str, quota: int) -> int:
    """
    Reject the request when the user already owns ``quota`` URLs.

    The count and the later insert are not one transaction, so concurrent
    requests near the limit can overshoot it slightly.

    Args:
        db: Database session
        user_id: Owner to count records for
        quota: Maximum number of records per user

    Returns:
        The current number of records owned by the user

    Raises:
        QuotaExceededError: If the user is at or over the quota
    """
    owned = await count_user_urls(db, user_id)
    if owned >= quota:
        logger.info(f"User {user_id} hit the URL quota ({owned}/{quota})")
        raise QuotaExceededError(f"URL limit reached ({quota})")
    return owned


async def allocate_short_url(
    db: AsyncSession,
    user_id: str,
    original_url: str,
    settings: Settings,
    generator: Callable[[int], str] = generate_short_code,
) -> URL:
    """
    Generate an unused short code and persist a new URL record with it.

    Uniqueness is guaranteed by the database constraint on ``short_code``;
    the lookup before each insert only saves wasted inserts.

    Args:
        db: Database session
        user_id: Owner of the new record
        original_url: Validated target URL
        settings: Provides attempt count and code length range
        generator: Produces a candidate code for a given length

    Returns:
        Created URL object

    Raises:
        AllocationExhaustedError: If every attempt collided
        IntegrityError: If the insert failed for a reason other than a duplicate code
    """
    for attempt in range(1, settings.SHORT_CODE_MAX_ATTEMPTS + 1):
        length = pick_code_length(
            settings.SHORT_CODE_MIN_LENGTH, settings.SHORT_CODE_MAX_LENGTH
        )
        short_code = generator(length)

        if await get_url_by_short_code(db, short_code):
            logger.warning(f"Short code {short_code} already taken (attempt {attempt})")
            continue

        db_url = URL(user_id=user_id, original_url=original_url, short_code=short_code)
        db.add(db_url)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if not is_unique_violation(e):
                raise
            logger.warning(
                f"Short code {short_code} collided on insert (attempt {attempt})"
            )
            continue

        await db.refresh(db_url)
        return db_url

    logger.error(
        f"Could not allocate a short code for user {user_id} "
        f"after {settings.SHORT_CODE_MAX_ATTEMPTS} attempts"
    )
    raise AllocationExhaustedError()


async def create_short_url(
    db: AsyncSession,
    raw_url: Any,
    user_id: str,
    settings: Settings,
    generator: Callable[[int], str] = generate_short_code,
) -> URL:
    """
    Create a new shortened URL for a user.

    Args:
        db: Database session
        raw_url: ``originalUrl`` exactly as submitted
        user_id: ID of the authenticated user
        settings: Quota and allocation settings
        generator: Short code generator, replaceable in tests

    Returns:
        Created URL object
    """
    original_url = validate_original_url(raw_url)
    await ensure_quota(db, user_id, settings.URL_QUOTA_PER_USER)
    db_url = await allocate_short_url(db, user_id, original_url, settings, generator)
    logger.info(f"User {user_id} shortened {original_url} to {db_url.short_code}")
    return db_url


async def list_user_urls(db: AsyncSession, user_id: str) -> List[URL]:
    result = await db.execute(
        select(URL).where(URL.user_id == user_id).order_by(URL.created_at.desc())
    )
    return list(result.scalars().all())


async def delete_user_url(db: AsyncSession, url_id: str, user_id: str) -> str:
    """
    Delete a URL owned by the user.

    A record owned by someone else is reported exactly like a missing one.

    Args:
        db: Database session
        url_id: ID of the record to delete
        user_id: ID of the authenticated user

    Returns:
        The deleted record's ID

    Raises:
        RequestValidationFailed: If the ID is blank
        NotFoundError: If no record with that ID belongs to the user
    """
    url_id = (url_id or "").strip()
    if not url_id:
        raise RequestValidationFailed("id is required")

    result = await db.execute(
        select(URL).where(URL.id == url_id, URL.user_id == user_id)
    )
    db_url = result.scalars().first()
    if not db_url:
        raise NotFoundError()

    await db.delete(db_url)
    await db.commit()

    logger.info(f"User {user_id} deleted URL {url_id}")
    return url_id


async def increment_click_count(db: AsyncSession, url_id: str) -> None:
    """
    Add one to a record's click counter.

    Failures are logged and swallowed: a lost click must not break the redirect.
    """
    try:
        await db.execute(
            update(URL)
            .where(URL.id == url_id)
            .values(click_count=URL.click_count + 1)
        )
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to record click for URL {url_id}: {e}")


async def resolve_short_code(db: AsyncSession, short_code: str) -> str:
    """
    Look up the target of a short code and count the visit.

    Args:
        db: Database session
        short_code: Code from the request path

    Returns:
        The stored original URL

    Raises:
        NotFoundError: If no record uses this code
        DataIntegrityError: If the record has no original URL
    """
    short_code = (short_code or "").strip()
    if not short_code:
        raise NotFoundError()

    db_url = await get_url_by_short_code(db, short_code)
    if not db_url:
        raise NotFoundError()

    original_url = db_url.original_url
    if not original_url:
        logger.error(f"URL {db_url.id} ({short_code}) has no original_url")
        raise DataIntegrityError()

    await increment_click_count(db, db_url.id)
    return original_url
