import csv
import io
import logging
import re
from typing import List

from shortly.config import settings
from shortly.exceptions import InvalidUrl, UnsupportedUpload
from shortly.utils import is_valid_url, normalize_url

logger = logging.getLogger(__name__)

CSV_NAME = re.compile(r"\.csv$", re.IGNORECASE)
TEXT_NAME = re.compile(r"\.(txt|log)$", re.IGNORECASE)


def detect_kind(filename: str, content_type: str) -> str:
    """Определяет формат загруженного файла: csv или text"""
    filename = filename or ""
    content_type = (content_type or "").lower()
    if "csv" in content_type or CSV_NAME.search(filename):
        return "csv"
    if "plain" in content_type or "text" in content_type or TEXT_NAME.search(filename):
        return "text"
    raise UnsupportedUpload()


def _split_lines(content: str) -> List[str]:
    return [line.strip() for line in content.splitlines() if line.strip()]


def extract_raw_urls(content: str, kind: str) -> List[str]:
    """Достает кандидаты в URL: первую колонку CSV или строки текста"""
    content = content.lstrip("\ufeff")
    if kind != "csv":
        return _split_lines(content)

    try:
        rows = list(csv.reader(io.StringIO(content), strict=True))
    except csv.Error as e:
        logger.warning("Не удалось разобрать CSV, разбиваем по строкам: %s", e)
        cells = [line.split(",")[0].strip() for line in _split_lines(content)]
        return [cell for cell in cells if cell]

    return [row[0].strip() for row in rows if row and row[0].strip()]


def parse_uploaded_urls(filename: str, content_type: str, data: bytes) -> List[str]:
    """Возвращает до MAX_BULK_URLS нормализованных URL из файла"""
    kind = detect_kind(filename, content_type)
    content = data.decode("utf-8", errors="replace")

    urls = [normalize_url(raw) for raw in extract_raw_urls(content, kind)]
    urls = [url for url in urls if is_valid_url(url)][:settings.MAX_BULK_URLS]

    if not urls:
        raise InvalidUrl("В файле не найдено допустимых URL")
    return urls
