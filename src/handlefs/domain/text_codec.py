# Licensed under the Apache License, Version 2.0
from __future__ import annotations

import base64
import re
from typing import Optional, Union

_CODECS = {
    "utf8": "utf-8",
    "utf-8": "utf-8",
    "ascii": "ascii",
    "latin1": "latin-1",
    "binary": "latin-1",
    "ucs2": "utf-16-le",
    "ucs-2": "utf-16-le",
    "utf16le": "utf-16-le",
    "utf-16le": "utf-16-le",
}
_BINARY_TO_TEXT = {"base64", "hex"}

SUPPORTED_ENCODINGS = frozenset(_CODECS) | _BINARY_TO_TEXT

_NOT_BASE64 = re.compile(r"[^A-Za-z0-9+/]")
_HEX_PAIR = re.compile(r"[0-9a-fA-F]{2}")


def _normalize(encoding: Optional[str]) -> str:
    name = (encoding or "utf8").lower()
    if name not in SUPPORTED_ENCODINGS:
        raise ValueError(f"Unknown encoding: {encoding}")
    return name


def _lenient_b64decode(data: str) -> bytes:
    # decoding stops at the first "="; url-safe characters are accepted and other
    # characters are skipped
    head = data.split("=", 1)[0]
    cleaned = _NOT_BASE64.sub("", head.replace("-", "+").replace("_", "/"))
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    return base64.b64decode(cleaned + "=" * (-len(cleaned) % 4))


def _lenient_unhexlify(data: str) -> bytes:
    """Decode leading hex pairs, stopping at the first invalid pair."""
    out = bytearray()
    for start in range(0, len(data) - 1, 2):
        pair = data[start : start + 2]
        if not _HEX_PAIR.fullmatch(pair):
            break
        out.append(int(pair, 16))
    return bytes(out)


def encode_string(data: str, encoding: Optional[str] = None) -> bytes:
    """
    Encode text to bytes. Never fails for a known encoding: unencodable
    characters become "?" and malformed base64/hex input is skipped.
    """
    name = _normalize(encoding)
    if name == "base64":
        return _lenient_b64decode(data)
    if name == "hex":
        return _lenient_unhexlify(data)
    return data.encode(_CODECS[name], errors="replace")


def decode_buffer(
    buffer: Union[bytes, bytearray, memoryview], encoding: Optional[str] = None
) -> str:
    """Decode bytes to text; invalid sequences become U+FFFD."""
    name = _normalize(encoding)
    raw = bytes(buffer)
    if name == "base64":
        return base64.b64encode(raw).decode("ascii")
    if name == "hex":
        return raw.hex()
    return raw.decode(_CODECS[name], errors="replace")
