from pydantic import BaseModel
from typing import Optional


class CurrentUser(BaseModel):
    """Identity resolved from a verified bearer token."""

    id: str
    email: Optional[str] = None
