import random
import re
import string
from datetime import datetime, timezone
from typing import Optional

import validators

from shortly.config import settings
from shortly.schemas import RequestContext

ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits

URL_PATTERN = re.compile(r"^https?://.+\..+", re.IGNORECASE)
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")

# Пути верхнего уровня, занятые маршрутами приложения
RESERVED_CODES = frozenset({"api", "health", "ready", "docs", "redoc", "openapi.json"})

def generate_short_code(length: int = settings.SHORT_CODE_LENGTH, rng: Optional[random.Random] = None) -> str:
    """Генерирует случайный короткий код указанной длины"""
    rng = rng or random
    return ''.join(rng.choice(ALPHABET) for _ in range(length))

def normalize_url(url: str) -> str:
    """Дописывает https:// к адресу без схемы"""
    url = (url or "").strip()
    if url.startswith("//"):
        return f"https:{url}"
    if not SCHEME_PATTERN.match(url):
        return f"https://{url}"
    return url

def is_valid_url(url: Optional[str]) -> bool:
    """Проверяет форму scheme://host.tld/... со схемой http или https"""
    return bool(url) and bool(URL_PATTERN.match(url))

def is_valid_alias(alias: str) -> bool:
    """Проверяет длину и допустимые символы пользовательского алиаса"""
    if not settings.MIN_CUSTOM_ALIAS_LENGTH <= len(alias) <= settings.MAX_CUSTOM_ALIAS_LENGTH:
        return False
    if is_reserved_code(alias):
        return False
    # Регистр сохраняется, slug проверяется без учета регистра
    return bool(validators.slug(alias.lower()))

def is_reserved_code(code: str) -> bool:
    return code.lower() in RESERVED_CODES

def build_short_url(short_code: str, base_url: Optional[str] = None) -> str:
    """Создает полный короткий URL с базовым URL приложения"""
    base = (base_url or settings.BASE_URL).rstrip("/")
    return f"{base}/{short_code}"

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Приводит наивное время к UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Проверяет, истек ли срок действия ссылки"""
    if not expires_at:
        return False

    now = now or datetime.now(timezone.utc)

    return as_utc(now) > as_utc(expires_at)

def today_iso() -> str:
    return datetime.now(timezone.utc).date().isoformat()

def get_client_ip(request) -> Optional[str]:
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else None

def extract_client_info(request) -> RequestContext:
    """Извлекает информацию о клиенте из запроса"""
    return RequestContext(
        base_url=settings.BASE_URL or str(request.base_url),
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        referer=request.headers.get("referer") or request.headers.get("referrer"),
        timestamp=datetime.now(timezone.utc)
    )
