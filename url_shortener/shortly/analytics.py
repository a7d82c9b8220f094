import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import geoip2.database
import geoip2.errors
from pydantic import ValidationError
from user_agents import parse as parse_user_agent

from shortly.config import settings
from shortly.exceptions import LinkNotFound
from shortly.models import Link
from shortly.schemas import AnalyticsEvent, AnalyticsSummary, RequestContext
from shortly.store import LinkStore
from shortly.utils import as_utc

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
DIRECT = "Direct"


@lru_cache(maxsize=1)
def get_geoip_reader() -> Optional[geoip2.database.Reader]:
    """Открывает базу MaxMind, если путь к ней задан в настройках"""
    if not settings.GEOIP_DATABASE_PATH:
        return None
    try:
        return geoip2.database.Reader(settings.GEOIP_DATABASE_PATH)
    except (OSError, ValueError) as e:
        logger.warning("База геолокации недоступна: %s", e)
        return None


def geolocate(ip: Optional[str]) -> Optional[str]:
    """Возвращает ISO-код страны по IP или None"""
    reader = get_geoip_reader()
    if not ip or reader is None:
        return None
    try:
        return reader.country(ip).country.iso_code
    except (geoip2.errors.AddressNotFoundError, ValueError):
        return None


def get_device_type(user_agent: str) -> str:
    ua = (user_agent or "").lower()
    if "mobile" in ua:
        return "Mobile"
    if "tablet" in ua:
        return "Tablet"
    return "Desktop"


def get_browser_family(user_agent: str) -> str:
    if not user_agent:
        return UNKNOWN
    family = parse_user_agent(user_agent).browser.family
    if not family or family == "Other":
        return UNKNOWN
    return family


def build_event(context: RequestContext) -> AnalyticsEvent:
    """Собирает событие перехода; ошибки разбора заменяются значениями по умолчанию"""
    user_agent = context.user_agent or ""
    event = AnalyticsEvent(
        timestamp=context.timestamp,
        ip=context.ip_address or "",
        user_agent=user_agent,
        referrer=context.referer or DIRECT,
    )

    try:
        event.country = geolocate(context.ip_address) or UNKNOWN
    except Exception as e:
        logger.warning("Ошибка геолокации для %s: %s", context.ip_address, e)

    try:
        event.device = get_device_type(user_agent)
        event.browser = get_browser_family(user_agent)
    except Exception as e:
        logger.warning("Ошибка разбора User-Agent %r: %s", user_agent, e)

    return event


def record_analytics(store: LinkStore, link: Link, context: RequestContext) -> None:
    """Учитывает переход: одно событие в журнал и +1 к счетчику. Ошибки не пробрасываются."""
    try:
        event = build_event(context)
        store.append_event(link, event)
    except Exception as e:
        logger.warning("Не удалось записать аналитику для %s: %s", link.short_code, e)


def load_events(link: Link) -> list:
    events = []
    for raw in link.analytics or []:
        try:
            events.append(AnalyticsEvent.model_validate(raw))
        except ValidationError as e:
            logger.warning("Пропущено поврежденное событие у %s: %s", link.short_code, e)
    return events


def summarize_link(link: Link, now: Optional[datetime] = None) -> AnalyticsSummary:
    """Сводка по ссылке за скользящее окно ANALYTICS_WINDOW_DAYS дней"""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=settings.ANALYTICS_WINDOW_DAYS)

    recent = [e for e in load_events(link) if as_utc(e.timestamp) >= cutoff]

    countries = Counter(e.country or UNKNOWN for e in recent)
    devices = Counter(e.device for e in recent)
    browsers = Counter(e.browser or UNKNOWN for e in recent)
    referrers = Counter(e.referrer or DIRECT for e in recent)
    daily = Counter(as_utc(e.timestamp).astimezone(timezone.utc).date().isoformat() for e in recent)

    return AnalyticsSummary(
        total_clicks=link.click_count or 0,
        recent_clicks=len(recent),
        countries=dict(countries),
        devices=dict(devices),
        browsers=dict(browsers),
        referrers=dict(referrers),
        daily_clicks=dict(daily),
        original_url=link.original_url,
        short_code=link.short_code,
        created_at=link.created_at,
        expiry_date=link.expires_at,
    )


def summarize(store: LinkStore, short_code: str, now: Optional[datetime] = None) -> AnalyticsSummary:
    link = store.get(short_code)
    if not link:
        raise LinkNotFound()
    return summarize_link(link, now)


def demo_summary(short_code: str) -> AnalyticsSummary:
    """Фиксированная статистика для демо-режима без базы данных"""
    today = datetime.now(timezone.utc).date()
    counts = [5, 8, 12, 6, 9, 7, 3]
    daily = {
        (today - timedelta(days=6 - i)).isoformat(): count
        for i, count in enumerate(counts)
    }
    return AnalyticsSummary(
        total_clicks=42,
        recent_clicks=15,
        countries={"US": 20, "UK": 12, "CA": 10},
        devices={"Desktop": 25, "Mobile": 15, "Tablet": 2},
        browsers={"Chrome": 24, "Safari": 12, "Firefox": 6},
        referrers={"Direct": 30, "Google": 8, "Twitter": 4},
        daily_clicks=daily,
        short_code=short_code,
        message="Демо-данные: для аналитики требуется подключение к базе данных",
    )
