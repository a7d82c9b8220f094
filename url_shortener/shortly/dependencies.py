from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from shortly.config import settings
from shortly.database import get_db, check_store, StoreStatus
from shortly.schemas import RequestContext
from shortly.store import LinkStore
from shortly.utils import extract_client_info

async def get_client_info(request: Request) -> RequestContext:
    """Получает информацию о клиенте из запроса"""
    return extract_client_info(request)

async def get_store_status(db: Session = Depends(get_db)) -> StoreStatus:
    """Проверяет доступность хранилища перед операцией"""
    return check_store(db)

async def get_link_store(
    db: Session = Depends(get_db),
    store_status: StoreStatus = Depends(get_store_status)
) -> Optional[LinkStore]:
    """Хранилище ссылок или None, если база недоступна (демо-режим)"""
    if store_status != StoreStatus.CONNECTED:
        return None
    return LinkStore(db, write_retries=settings.ANALYTICS_WRITE_RETRIES)
