"""QR payload construction and PNG rendering."""

from __future__ import annotations

import base64
import io

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_H

from workforce_ingest.core.logging import get_logger

logger = get_logger(__name__)

QR_IMAGE_WIDTH = 256


def build_qr_payload(employee_id: str, full_name: str, phone_number: str) -> str:
    return f"Employee ID: {employee_id}\nName: {full_name}\nPhone: {phone_number}"


def render_qr_data_url(payload: str, width: int = QR_IMAGE_WIDTH) -> str:
    """
    Encode `payload` as a PNG data URL.

    Error correction level H, one-module quiet zone, scaled to `width`
    pixels square.
    """
    qr = qrcode.QRCode(error_correction=ERROR_CORRECT_H, border=1, box_size=10)
    qr.add_data(payload)
    qr.make(fit=True)

    image = qr.make_image(fill_color="black", back_color="white").get_image()
    image = image.convert("RGB").resize((width, width), Image.Resampling.NEAREST)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
