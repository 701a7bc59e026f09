"""Best-effort PDF text recovery without a PDF parser.

Scans the raw bytes once for literal strings, ``(like this)``, and the
operators around them. Literals inside ``BT`` / ``ET`` text objects are
kept. Files with no text objects fall back to literals that are shown with
``Tj``, ``TJ``, ``'`` or ``"``. Literals right after a ``/Name`` key
are dictionary values, such as ``/Producer``, and are never page text.
Balanced parentheses are understood one level deep; deeper nesting needs
escapes. Compressed content streams and remapped fonts defeat this
entirely; such files come back ``EMPTY`` and would need OCR or a real
parser (see ``pdf_pypdf``).
"""

from __future__ import annotations

import logging
import re

from sourcebook.extractors.base import ExtractionResult

logger = logging.getLogger(__name__)

_TOKEN = re.compile(
    rb"(?P<literal>\((?:\\.|[^\\()]|\((?:\\.|[^\\()])*\))*\))"
    rb"|(?<![A-Za-z])(?P<op>[A-Za-z]+\*?)(?![A-Za-z])"
    rb"|(?P<quote>['\"])"
    rb"|(?P<delim><<|>>)"
    rb"|(?P<name>/[^\s/\[\]()<>{}%]+)",
    re.S,
)
_SHOW_OPERATORS = {b"Tj", b"TJ", b"'", b'"'}
_ESCAPE = re.compile(r"\\([0-7]{1,3}|.)", re.S)
_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "",
    "f": "",
    "(": "(",
    ")": ")",
    "\\": "\\",
    "\n": "",
    "\r": "",
}


def _unescape_match(match: re.Match) -> str:
    code = match.group(1)
    if code[0] in "01234567":
        return chr(int(code, 8) & 0xFF)
    return _SIMPLE_ESCAPES.get(code, code)


def unescape_literal(raw: bytes) -> str:
    """Decode the body of a PDF literal string."""
    return _ESCAPE.sub(_unescape_match, raw.decode("latin-1"))


def scan_literals(data: bytes) -> tuple[list[bytes], int]:
    """Return the page-text literal bodies in ``data`` and the text object count."""
    text_objects = 0
    in_text = False
    inside: list[bytes] = []
    shown: list[bytes] = []
    pending: list[bytes] = []
    after_name = False
    for match in _TOKEN.finditer(data):
        literal = match.group("literal")
        if literal is not None:
            if in_text:
                inside.append(literal[1:-1])
            elif not after_name:
                pending.append(literal[1:-1])
            after_name = False
            continue
        after_name = match.group("name") is not None
        operator = match.group("op") or match.group("quote")
        if operator in _SHOW_OPERATORS:
            shown.extend(pending)
        elif operator == b"BT":
            in_text = True
            text_objects += 1
        elif operator == b"ET":
            in_text = False
        pending = []
    return (inside if text_objects else shown), text_objects


class HeuristicPdfExtractor:
    """Regex scan over raw PDF bytes."""

    name: str = "heuristic"

    def extract(self, data: bytes) -> ExtractionResult:
        literals, text_objects = scan_literals(data)

        pieces = [unescape_literal(lit) for lit in literals]
        text = _CONTROL.sub(" ", " ".join(pieces))
        result = ExtractionResult.from_text(text)
        logger.debug(
            "Heuristic PDF scan: %d text objects, %d literals, %d words (%s)",
            text_objects,
            len(literals),
            result.word_count,
            result.status.value,
        )
        return result
