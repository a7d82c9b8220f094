from sqlalchemy import Column, Integer, String, DateTime, Text, JSON
from datetime import datetime, timezone

from shortly.database import Base

class Link(Base):
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    short_code = Column(String(20), unique=True, index=True, nullable=False)
    custom_alias = Column(String(20), unique=True, index=True, nullable=True)
    original_url = Column(Text, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    click_count = Column(Integer, default=0, nullable=False)
    # Упорядоченный журнал переходов, хранится в самой записи
    analytics = Column(JSON, default=list, nullable=False)
    meta_title = Column(Text, nullable=True)
    meta_description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
