import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from shortly.dependencies import get_client_info, get_link_store
from shortly.exceptions import ShortlyError
from shortly.export import build_export_rows, render_csv
from shortly.qr import generate_qr_code
from shortly.routers.links import http_error
from shortly.schemas import ExportRequest, RequestContext
from shortly.store import LinkStore

router = APIRouter(prefix="/api", tags=["tools"])

# QR-код для короткой ссылки
@router.get("/qr")
async def get_qr_code(
    data: str = "",
    size: int = 200,
    color: str = "000000",
    bg: str = "ffffff",
    margin: int = 1
):
    """Возвращает PNG с QR-кодом для переданной строки"""
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Не передан параметр data"
        )

    image = generate_qr_code(data, size=size, color=color, bg=bg, margin=margin)

    return Response(
        content=image,
        media_type="image/png",
        headers={"Cache-Control": "public, max-age=31536000, immutable"}
    )

# Экспорт ссылок в CSV
@router.post("/export-urls")
async def export_urls(
    export_data: ExportRequest,
    store: Optional[LinkStore] = Depends(get_link_store),
    client_info: RequestContext = Depends(get_client_info)
):
    """Выгружает результаты сокращения или ссылки по кодам в CSV"""
    try:
        rows = build_export_rows(
            store,
            client_info.base_url,
            results=export_data.results,
            short_codes=export_data.short_codes,
        )
    except ShortlyError as e:
        raise http_error(e)

    filename = f"shortly_export_{int(time.time() * 1000)}.csv"
    return Response(
        content=render_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
