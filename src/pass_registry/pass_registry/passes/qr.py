from __future__ import annotations

import io
import re

import qrcode

from .model import PassRecord


def display_pass_id(record: PassRecord) -> str:
    """Pass number as printed on the card: zero-padded to four digits."""
    return str(record.pass_id).zfill(4) if record.pass_id else "0000"


def qr_payload(record: PassRecord) -> str:
    name = re.sub(r"\s+", "_", record.name.strip())
    return f"ID:{display_pass_id(record)};N:{name};C:{record.cnic}"


def barcode_payload(record: PassRecord) -> str:
    """Value encoded in the barcode on the back of the card."""
    name = re.sub(r"\s+", "_", record.name.strip())
    return f"{display_pass_id(record)}-{name}-{record.cnic}"


def qr_png(record: PassRecord, *, box_size: int = 10, border: int = 2) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr.add_data(qr_payload(record))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf
