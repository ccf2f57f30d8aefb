from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional
from datetime import datetime


class URLCreate(BaseModel):
    # Checked in validate_original_url
    original_url: Optional[Any] = Field(default=None, alias="originalUrl")

    model_config = ConfigDict(populate_by_name=True)


class URLSummary(BaseModel):
    id: str
    short_code: str
    original_url: str
    click_count: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class URL(URLSummary):
    user_id: str


class ShortenResponse(BaseModel):
    url: URL


class URLList(BaseModel):
    urls: List[URLSummary]


class DeleteResponse(BaseModel):
    deleted_id: str = Field(alias="deletedId")

    model_config = ConfigDict(populate_by_name=True)
