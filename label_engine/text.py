"""Text measuring and wrapping helpers shared by the anchor resolver and painter."""

from __future__ import annotations

from typing import Iterable, List

from reportlab.pdfbase.pdfmetrics import stringWidth

from label_types import FontWeight

REGULAR_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
LINE_HEIGHT = 1.2
ELLIPSIS = "…"


def font_for_weight(weight: FontWeight | str) -> str:
    return BOLD_FONT if str(weight) == FontWeight.BOLD.value else REGULAR_FONT


def text_width(text: str, font_name: str, font_size: float) -> float:
    if not text or font_size <= 0:
        return 0.0
    return stringWidth(text, font_name, font_size)


def wrap_text_to_width(
    text: str,
    font_name: str,
    font_size: float,
    max_width: float,
) -> Iterable[str]:
    """Wrap text into lines that fit within the specified width."""

    if not text or max_width <= 0:
        return []

    words = text.split()
    if not words:
        return []

    lines: List[str] = []
    current: List[str] = []
    for word in words:
        tentative = " ".join(current + [word]) if current else word
        if stringWidth(tentative, font_name, font_size) <= max_width:
            current.append(word)
            continue

        if current:
            lines.append(" ".join(current))
            current = []

        if stringWidth(word, font_name, font_size) <= max_width:
            current = [word]
            continue

        # single word exceeds width; perform character-level wrap
        partial = ""
        for ch in word:
            candidate = partial + ch
            if stringWidth(candidate, font_name, font_size) > max_width and partial:
                lines.append(partial)
                partial = ch
            else:
                partial = candidate
        if partial:
            current = [partial]

    if current:
        lines.append(" ".join(current))
    return lines


def ellipsize(
    text: str,
    font_name: str,
    font_size: float,
    max_width: float,
) -> str:
    """Trim ``text`` with a trailing ellipsis until it fits ``max_width``."""

    text = text.strip()
    if text_width(text, font_name, font_size) <= max_width:
        return text

    ell_width = text_width(ELLIPSIS, font_name, font_size)
    if ell_width > max_width:
        return ""
    trimmed = text
    while trimmed and text_width(trimmed + ELLIPSIS, font_name, font_size) > max_width:
        trimmed = trimmed[:-1]
    trimmed = trimmed.rstrip()
    return trimmed + ELLIPSIS if trimmed else ELLIPSIS


def fit_lines(
    text: str,
    font_name: str,
    font_size: float,
    max_width: float,
    max_height: float,
) -> List[str]:
    """Wrap ``text`` and drop lines that do not fit ``max_height``.

    The font size is never changed; when lines are dropped the last visible
    one ends with an ellipsis.
    """

    lines = list(wrap_text_to_width(text, font_name, font_size, max_width))
    if not lines:
        return []

    line_height = font_size * LINE_HEIGHT
    capacity = max(int(max_height // line_height), 1) if line_height > 0 else 1
    if len(lines) <= capacity:
        return lines

    visible = lines[:capacity]
    visible[-1] = ellipsize(visible[-1] + ELLIPSIS, font_name, font_size, max_width)
    return visible
