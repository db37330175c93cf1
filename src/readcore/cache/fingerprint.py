"""
Content fingerprints used as cache-key components.

The hash is a 32-bit polynomial rolling hash over UTF-16 code units. It is
stable across processes and platforms but is not cryptographic.
"""

from __future__ import annotations

from ..document.tree import normalize_whitespace

_MASK = 0xFFFFFFFF
_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    value &= _MASK
    return value - 0x100000000 if value & _SIGN else value


def content_hash(text: str) -> int:
    """Hash ``text`` as ``h = h * 31 + unit`` wrapped to a signed 32-bit int, returning ``abs(h)``."""
    h = 0
    data = text.encode("utf-16-le", errors="surrogatepass")
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(h * 31 + unit)
    return abs(h)


def fingerprint(text: str) -> str:
    """Decimal fingerprint of extracted text; markup-only changes never affect it."""
    return str(content_hash(normalize_whitespace(text)))
