"""Генерация QR-кодов для коротких ссылок"""
import io
import re

import qrcode

from shortly.config import settings

HEX_DIGITS = re.compile(r"[^0-9a-f]", re.IGNORECASE)


def sanitize_color(value: str, default: str) -> str:
    """Оставляет не более 6 шестнадцатеричных цифр, иначе цвет по умолчанию"""
    cleaned = HEX_DIGITS.sub("", value or "")[:6]
    return cleaned or default


def clamp_size(size: int) -> int:
    return max(1, min(size, settings.QR_MAX_SIZE))


def clamp_margin(margin: int) -> int:
    return max(0, min(margin, 10))


def generate_qr_code(data: str, size: int = 200, color: str = "000000",
                     bg: str = "ffffff", margin: int = 1) -> bytes:
    """Рисует QR-код и возвращает PNG; модуль занимает size/50 пикселей"""
    scale = max(1, round(clamp_size(size) / 50))

    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=scale,
        border=clamp_margin(margin),
    )

    qr.add_data(data)
    qr.make(fit=True)

    qr_image = qr.make_image(
        fill_color=f"#{sanitize_color(color, '000000')}",
        back_color=f"#{sanitize_color(bg, 'ffffff')}",
    )

    img_buffer = io.BytesIO()
    qr_image.save(img_buffer, format="PNG")

    return img_buffer.getvalue()
