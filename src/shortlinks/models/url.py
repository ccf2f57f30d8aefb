from sqlalchemy import Column, String, Integer, Text
from src.shortlinks.db.base import BaseModel


class URL(BaseModel):
    __tablename__ = "urls"

    user_id = Column(String(64), index=True, nullable=False)
    short_code = Column(String(16), unique=True, index=True, nullable=False)
    original_url = Column(Text, nullable=False)
    click_count = Column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<URL(id={self.id}, short_code='{self.short_code}', click_count={self.click_count})>"
