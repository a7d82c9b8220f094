from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import RedirectResponse

from shortly import analytics, shortener
from shortly.config import settings
from shortly.dependencies import get_client_info, get_link_store
from shortly.exceptions import ShortlyError
from shortly.schemas import (
    AnalyticsSummary, BulkShortenRequest, BulkShortenResponse, RequestContext,
    ShortenRequest, ShortenResponse,
)
from shortly.store import LinkStore
from shortly.uploads import parse_uploaded_urls

router = APIRouter(tags=["links"])


def http_error(error: ShortlyError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.detail)


def batch_response(batch: shortener.BatchResult, store: Optional[LinkStore]) -> BulkShortenResponse:
    message = None
    if store is None:
        message = shortener.DEMO_BULK_MESSAGE.format(limit=settings.DEMO_BULK_LIMIT)
    return BulkShortenResponse(results=batch.results, skipped=batch.skipped, message=message)


# Создание короткой ссылки
@router.post("/api/shorten", response_model=ShortenResponse, status_code=status.HTTP_201_CREATED)
async def create_short_link(
    link_data: ShortenRequest,
    store: Optional[LinkStore] = Depends(get_link_store),
    client_info: RequestContext = Depends(get_client_info)
):
    """Создает короткую ссылку"""
    try:
        if store is None:
            return shortener.shorten_demo(client_info, link_data.url, link_data.custom_alias)

        return shortener.shorten(
            store,
            client_info,
            link_data.url,
            custom_alias=link_data.custom_alias,
            expires_at=link_data.expires_at,
            meta_title=link_data.meta_title,
            meta_description=link_data.meta_description,
        )
    except ShortlyError as e:
        raise http_error(e)

# Пакетное сокращение
@router.post("/api/bulk-shorten", response_model=BulkShortenResponse)
async def bulk_shorten(
    batch_data: BulkShortenRequest,
    store: Optional[LinkStore] = Depends(get_link_store),
    client_info: RequestContext = Depends(get_client_info)
):
    """Сокращает до 100 URL за один запрос"""
    try:
        if store is None:
            batch = shortener.process_batch_demo(client_info, batch_data.urls)
        else:
            batch = shortener.process_batch(store, client_info, batch_data.urls)
    except ShortlyError as e:
        raise http_error(e)

    return batch_response(batch, store)

# Пакетное сокращение из файла
@router.post("/api/bulk-upload", response_model=BulkShortenResponse)
async def bulk_upload(
    file: Optional[UploadFile] = File(None),
    store: Optional[LinkStore] = Depends(get_link_store),
    client_info: RequestContext = Depends(get_client_info)
):
    """Сокращает URL из загруженного CSV или TXT файла"""
    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Файл не загружен"
        )

    data = await file.read(settings.MAX_UPLOAD_SIZE + 1)
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Файл слишком большой"
        )

    try:
        urls = parse_uploaded_urls(file.filename, file.content_type, data)
        if store is None:
            batch = shortener.process_batch_demo(client_info, urls)
        else:
            batch = shortener.process_batch(store, client_info, urls)
    except ShortlyError as e:
        raise http_error(e)

    return batch_response(batch, store)

# Получение аналитики по ссылке
@router.get("/api/analytics/{short_code}", response_model=AnalyticsSummary)
async def get_link_analytics(
    short_code: str,
    store: Optional[LinkStore] = Depends(get_link_store)
):
    """Получает сводную статистику переходов за последние 7 дней"""
    if store is None:
        return analytics.demo_summary(short_code)

    try:
        return analytics.summarize(store, short_code)
    except ShortlyError as e:
        raise http_error(e)

# Перенаправление по короткой ссылке
@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_url(
    short_code: str,
    store: Optional[LinkStore] = Depends(get_link_store),
    client_info: RequestContext = Depends(get_client_info)
):
    """Перенаправляет по короткой ссылке и учитывает переход"""
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Демо-режим: для перехода по ссылке требуется подключение к базе данных"
        )

    try:
        original_url = shortener.resolve(store, short_code, client_info)
    except ShortlyError as e:
        raise http_error(e)

    return RedirectResponse(url=original_url)
