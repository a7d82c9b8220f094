import csv
import io
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from shortly.exceptions import NoDataToExport, StoreUnavailable
from shortly.schemas import ExportItem, ExportRow
from shortly.store import LinkStore
from shortly.utils import build_short_url, today_iso

logger = logging.getLogger(__name__)

CSV_HEADER = ["Original URL", "Short URL", "Short Code", "Creation Date", "Click Count"]


def rows_from_results(results: List[ExportItem], store: Optional[LinkStore]) -> List[ExportRow]:
    """Строки экспорта по результатам сокращения, дата и клики берутся из хранилища"""
    links = {}
    if store is not None:
        try:
            links = {link.short_code: link for link in store.find_many(r.short_code for r in results)}
        except SQLAlchemyError as e:
            logger.warning("Запрос к БД не удался, экспортируем только переданные данные: %s", e)
            store.db.rollback()

    rows = []
    for item in results:
        link = links.get(item.short_code)
        rows.append(ExportRow(
            original_url=item.original_url,
            short_url=item.short_url,
            short_code=item.short_code,
            creation_date=link.created_at.date().isoformat() if link and link.created_at else today_iso(),
            click_count=link.click_count if link else 0,
        ))
    return rows


def rows_from_short_codes(short_codes: List[str], store: Optional[LinkStore], base_url: str) -> List[ExportRow]:
    if store is None:
        raise StoreUnavailable("База данных недоступна, передайте массив results")

    return [
        ExportRow(
            original_url=link.original_url,
            short_url=build_short_url(link.short_code, base_url),
            short_code=link.short_code,
            creation_date=link.created_at.date().isoformat(),
            click_count=link.click_count,
        )
        for link in store.find_many(short_codes)
    ]


def build_export_rows(
    store: Optional[LinkStore],
    base_url: str,
    results: Optional[List[ExportItem]] = None,
    short_codes: Optional[List[str]] = None,
) -> List[ExportRow]:
    """store=None означает, что хранилище недоступно"""
    if results:
        rows = rows_from_results(results, store)
    elif short_codes:
        rows = rows_from_short_codes(short_codes, store, base_url)
    else:
        raise NoDataToExport("Передайте массив results или shortCodes")

    if not rows:
        raise NoDataToExport()
    return rows


def render_csv(rows: List[ExportRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([row.original_url, row.short_url, row.short_code, row.creation_date, row.click_count])
    return buffer.getvalue()
