"""QR encoding of pairing codes. The payload is the bare code."""

import base64
from io import BytesIO

import qrcode

from fbop.utils.codes import normalize_code


def encode_qr_png(payload: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render ``payload`` as a PNG QR code."""
    qr = qrcode.QRCode(version=None, box_size=box_size, border=border)
    qr.add_data(payload)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffered = BytesIO()
    img.save(buffered, format="PNG")
    return buffered.getvalue()


def encode_qr_base64(payload: str) -> str:
    return base64.b64encode(encode_qr_png(payload)).decode()


def decode_scan(contents: str) -> str:
    """Turn a scanner's decoded text back into a code.

    Takes the text the device's camera scanner already read out of the QR
    image, not the image itself; decoding pixels is left to the scanner.
    """
    code = normalize_code(contents)
    if not code:
        raise ValueError("Scanned QR code is empty")
    return code
