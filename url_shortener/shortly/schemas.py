from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Union
from datetime import datetime, timezone


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RequestContext(BaseModel):
    """Данные запроса, нужные ядру: базовый URL и сведения о клиенте"""
    base_url: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    referer: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ShortenRequest(CamelModel):
    url: str = Field(..., description="Оригинальный URL для сокращения")
    custom_alias: Optional[str] = Field(None, description="Пользовательский алиас для короткой ссылки")
    expires_at: Optional[datetime] = Field(None, description="Время истечения срока действия ссылки")
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class ShortenResponse(CamelModel):
    short_url: str
    short_code: str
    original_url: str
    persisted: bool = True
    message: Optional[str] = None


class BulkUrlItem(BaseModel):
    url: Optional[str] = None


class BulkShortenRequest(CamelModel):
    urls: List[Union[BulkUrlItem, str]] = []


class BulkShortenResult(CamelModel):
    original_url: str
    short_url: str
    short_code: str
    message: Optional[str] = None


class SkippedUrl(CamelModel):
    url: Optional[str] = None
    reason: str


class BulkShortenResponse(CamelModel):
    results: List[BulkShortenResult] = []
    skipped: List[SkippedUrl] = []
    message: Optional[str] = None


class AnalyticsEvent(CamelModel):
    timestamp: datetime
    ip: str = ""
    user_agent: str = ""
    referrer: str = "Direct"
    country: str = "Unknown"
    device: str = "Desktop"
    browser: str = "Unknown"


class AnalyticsSummary(CamelModel):
    total_clicks: int
    recent_clicks: int
    countries: Dict[str, int] = {}
    devices: Dict[str, int] = {}
    browsers: Dict[str, int] = {}
    referrers: Dict[str, int] = {}
    daily_clicks: Dict[str, int] = {}
    original_url: Optional[str] = None
    short_code: str
    created_at: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    message: Optional[str] = None


class ExportItem(CamelModel):
    original_url: str = ""
    short_url: str = ""
    short_code: str = ""


class ExportRequest(CamelModel):
    results: Optional[List[ExportItem]] = None
    short_codes: Optional[List[str]] = None


class ExportRow(CamelModel):
    original_url: str
    short_url: str
    short_code: str
    creation_date: str
    click_count: int
