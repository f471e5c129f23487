"""
Best-effort byte decoding.

Order of attempts:
1. Byte-order mark (UTF-8, UTF-16 LE/BE, UTF-32 LE/BE)
2. Strict UTF-8
3. The locale's preferred encoding
4. cp1252, then shift_jis

A candidate only wins if it decodes without errors and the result holds no
NUL characters (NUL in "text" almost always means a binary file).
"""

from __future__ import annotations

import codecs
import locale
from pathlib import Path

from ..errors import EncodingError

_BOMS = (
    # UTF-32 first: its LE mark starts with the UTF-16 LE mark.
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

FALLBACK_ENCODINGS = ("cp1252", "shift_jis")


def candidate_encodings() -> list[str]:
    """Encodings tried after BOM sniffing, without duplicates."""
    candidates = ["utf-8"]
    preferred = locale.getpreferredencoding(False)
    for name in (preferred, *FALLBACK_ENCODINGS):
        if not name:
            continue
        try:
            canonical = codecs.lookup(name).name
        except LookupError:
            continue
        if canonical not in (codecs.lookup(c).name for c in candidates):
            candidates.append(name)
    return candidates


def _try_decode(raw: bytes, encoding: str) -> str | None:
    try:
        text = raw.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return None
    if "\x00" in text:
        return None
    return text


def detect_and_decode(raw: bytes, path: Path | str = "<bytes>") -> tuple[str, str]:
    """
    Decode raw file bytes.

    Args:
        raw: File contents.
        path: Used only for error messages.

    Returns:
        (text, encoding_name)

    Raises:
        EncodingError: If no candidate encoding produces valid text.
    """
    if not raw:
        return "", "utf-8"

    for bom, encoding in _BOMS:
        if raw.startswith(bom):
            text = _try_decode(raw, encoding)
            if text is not None:
                return text, encoding
            raise EncodingError(path, f"invalid {encoding} content after byte-order mark")

    for encoding in candidate_encodings():
        text = _try_decode(raw, encoding)
        if text is not None:
            return text, encoding

    raise EncodingError(path, "bytes could not be decoded as text")
