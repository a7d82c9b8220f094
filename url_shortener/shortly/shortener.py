"""Выделение коротких кодов, создание ссылок, переходы и пакетная обработка."""
import logging
from datetime import datetime
from typing import Callable, List, NamedTuple, Optional, Union

from shortly.analytics import record_analytics
from shortly.config import settings
from shortly.exceptions import (
    AliasTaken, BatchTooLarge, CodeSpaceExhausted, EmptyBatch,
    InvalidAlias, InvalidUrl, LinkExpired, LinkNotFound, ShortCodeConflict,
)
from shortly.models import Link
from shortly.schemas import (
    BulkShortenResult, BulkUrlItem, RequestContext, ShortenResponse, SkippedUrl,
)
from shortly.store import LinkStore
from shortly.utils import (
    as_utc, build_short_url, generate_short_code, is_expired, is_reserved_code,
    is_valid_alias, is_valid_url, normalize_url,
)

logger = logging.getLogger(__name__)

DEMO_MESSAGE = "Демо-режим: для сокращения ссылок требуется подключение к базе данных"
DEMO_BULK_MESSAGE = "Демо-режим: без базы данных обработаны только первые {limit} URL"


class BatchResult(NamedTuple):
    results: List[BulkShortenResult]
    skipped: List[SkippedUrl]


def prepare_url(url: Optional[str]) -> str:
    """Нормализует схему и проверяет форму URL"""
    if not url or not url.strip():
        raise InvalidUrl("Требуется URL")
    url = normalize_url(url)
    if not is_valid_url(url):
        raise InvalidUrl("Неверный формат URL")
    return url


def allocate_short_code(
    store: LinkStore,
    requested_alias: Optional[str] = None,
    generator: Callable[[], str] = generate_short_code,
    max_attempts: int = settings.MAX_ALLOCATION_ATTEMPTS,
) -> str:
    """Подбирает свободный короткий код.

    Запрошенный алиас проверяется один раз и используется как есть.
    Иначе коды генерируются, пока не найдется свободный; при max_attempts > 0
    число попыток ограничено и исчерпание дает CodeSpaceExhausted.
    """
    if requested_alias:
        if store.code_exists(requested_alias):
            raise AliasTaken()
        return requested_alias

    attempts = 0
    while True:
        code = generator()
        attempts += 1
        if not is_reserved_code(code) and not store.code_exists(code):
            return code
        logger.info("Коллизия короткого кода %s, попытка %d", code, attempts)
        if max_attempts and attempts >= max_attempts:
            raise CodeSpaceExhausted()


def create_link(
    store: LinkStore,
    original_url: str,
    custom_alias: Optional[str] = None,
    expires_at: Optional[datetime] = None,
    meta_title: Optional[str] = None,
    meta_description: Optional[str] = None,
    generator: Callable[[], str] = generate_short_code,
) -> Link:
    """Выделяет код и сохраняет ссылку, повторяя выбор кода при конфликте вставки"""
    for attempt in range(settings.MAX_INSERT_RETRIES):
        short_code = allocate_short_code(store, custom_alias, generator)
        link = Link(
            short_code=short_code,
            custom_alias=custom_alias,
            original_url=original_url,
            expires_at=as_utc(expires_at),
            meta_title=meta_title,
            meta_description=meta_description,
            click_count=0,
            analytics=[],
        )
        try:
            return store.insert(link)
        except ShortCodeConflict:
            if custom_alias:
                raise AliasTaken()
            logger.info("Код %s занят параллельным запросом, попытка %d", short_code, attempt + 1)

    raise CodeSpaceExhausted()


def shorten(
    store: LinkStore,
    context: RequestContext,
    url: str,
    custom_alias: Optional[str] = None,
    expires_at: Optional[datetime] = None,
    meta_title: Optional[str] = None,
    meta_description: Optional[str] = None,
) -> ShortenResponse:
    original_url = prepare_url(url)
    alias = clean_alias(custom_alias)

    link = create_link(
        store, original_url, alias, expires_at,
        meta_title=meta_title, meta_description=meta_description,
    )

    return ShortenResponse(
        short_url=build_short_url(link.short_code, context.base_url),
        short_code=link.short_code,
        original_url=link.original_url,
    )


def shorten_demo(context: RequestContext, url: str, custom_alias: Optional[str] = None) -> ShortenResponse:
    """Ответ без сохранения, когда хранилище недоступно"""
    original_url = prepare_url(url)
    short_code = clean_alias(custom_alias) or generate_short_code()
    logger.info("Демо-режим: код %s не сохранен", short_code)
    return ShortenResponse(
        short_url=build_short_url(short_code, context.base_url),
        short_code=short_code,
        original_url=original_url,
        persisted=False,
        message=DEMO_MESSAGE,
    )


def clean_alias(custom_alias: Optional[str]) -> Optional[str]:
    alias = (custom_alias or "").strip()
    if not alias:
        return None
    if not is_valid_alias(alias):
        raise InvalidAlias(
            f"Алиас должен быть длиной {settings.MIN_CUSTOM_ALIAS_LENGTH}-"
            f"{settings.MAX_CUSTOM_ALIAS_LENGTH} символов: латиница, цифры и дефис"
        )
    return alias


def resolve(store: LinkStore, short_code: str, context: RequestContext) -> str:
    """Возвращает оригинальный URL и учитывает переход.

    На путях NotFound/Expired хранилище не изменяется.
    """
    link = store.get(short_code)

    if not link:
        raise LinkNotFound()

    if is_expired(link.expires_at, context.timestamp):
        raise LinkExpired()

    original_url = link.original_url
    record_analytics(store, link, context)
    return original_url


def check_batch_size(urls: list) -> None:
    if not urls:
        raise EmptyBatch()
    if len(urls) > settings.MAX_BULK_URLS:
        raise BatchTooLarge(f"Допускается не более {settings.MAX_BULK_URLS} URL в пакете")


def _raw_url(item: Union[BulkUrlItem, str, None]) -> Optional[str]:
    if isinstance(item, BulkUrlItem):
        return item.url
    return item


def process_batch(
    store: LinkStore,
    context: RequestContext,
    urls: List[Union[BulkUrlItem, str]],
) -> BatchResult:
    """Сокращает список URL по одному.

    Невалидные адреса и ошибки сохранения отдельных элементов не прерывают
    пакет: элемент попадает в skipped, уже созданные ссылки остаются.
    """
    check_batch_size(urls)

    results = []
    skipped = []

    for item in urls:
        raw = _raw_url(item)
        if not raw or not raw.strip():
            skipped.append(SkippedUrl(url=raw, reason="missing url"))
            continue

        try:
            original_url = prepare_url(raw)
        except InvalidUrl:
            skipped.append(SkippedUrl(url=raw, reason="invalid url"))
            continue

        try:
            link = create_link(store, original_url)
        except Exception as e:
            logger.error("Ошибка при обработке URL %s: %s", original_url, e)
            skipped.append(SkippedUrl(url=raw, reason="persist failed"))
            continue

        results.append(BulkShortenResult(
            original_url=link.original_url,
            short_url=build_short_url(link.short_code, context.base_url),
            short_code=link.short_code,
        ))

    logger.info("Пакет обработан: %d создано, %d пропущено", len(results), len(skipped))
    return BatchResult(results=results, skipped=skipped)


def process_batch_demo(context: RequestContext, urls: List[Union[BulkUrlItem, str]]) -> BatchResult:
    check_batch_size(urls)

    results = []
    skipped = []
    for item in urls:
        raw = _raw_url(item)
        if not raw or not raw.strip():
            skipped.append(SkippedUrl(url=raw, reason="missing url"))
            continue
        try:
            original_url = prepare_url(raw)
        except InvalidUrl:
            skipped.append(SkippedUrl(url=raw, reason="invalid url"))
            continue
        if len(results) >= settings.DEMO_BULK_LIMIT:
            continue
        short_code = generate_short_code()
        results.append(BulkShortenResult(
            original_url=original_url,
            short_url=build_short_url(short_code, context.base_url),
            short_code=short_code,
            message=DEMO_MESSAGE,
        ))

    return BatchResult(results=results, skipped=skipped)
