"""QR symbol encoding and drawing."""

from __future__ import annotations

from functools import lru_cache

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.exceptions import DataOverflowError
from reportlab.pdfgen import canvas

from label_errors import RenderFailure

QRMatrix = tuple[tuple[bool, ...], ...]


@lru_cache(maxsize=256)
def encode_qr(payload: str) -> QRMatrix:
    """Return the module matrix for ``payload`` without a quiet zone."""

    if not payload:
        raise RenderFailure("Cannot encode an empty QR payload")
    qr = qrcode.QRCode(border=0, error_correction=ERROR_CORRECT_M)
    qr.add_data(payload)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as exc:
        raise RenderFailure(f"Payload '{payload[:32]}' cannot be encoded as a QR symbol") from exc
    return tuple(tuple(bool(cell) for cell in row) for row in qr.get_matrix())


def draw_qr_matrix(
    canvas_obj: canvas.Canvas,
    matrix: QRMatrix,
    left: float,
    bottom: float,
    size: float,
) -> None:
    """Fill dark modules as one path, merging horizontal runs per row."""

    count = len(matrix)
    if count == 0 or size <= 0:
        return
    module = size / count
    top = bottom + size
    path = canvas_obj.beginPath()
    for row_index, row in enumerate(matrix):
        y = top - (row_index + 1) * module
        start: int | None = None
        for col_index, dark in enumerate(row + (False,)):
            if dark and start is None:
                start = col_index
            elif not dark and start is not None:
                path.rect(left + start * module, y, (col_index - start) * module, module)
                start = None
    canvas_obj.drawPath(path, stroke=0, fill=1)
