"""
=============================================================================
CONTENT TYPE SNIFFING
=============================================================================

Guesses a MIME type from the first bytes of a response body.

The gzip response writer needs a Content-Type before the first compressed
byte leaves, and once the body is compressed nobody downstream can look at
it any more. So if the handler never set one, the writer sniffs the
plaintext of its first write:

    handler.write(b"<html><body>...")
                    │
                    ▼
    ┌──────────────────────────────────────────────────────────────────┐
    │  detect_content_type(first 512 bytes)                            │
    │                                                                   │
    │   1. Skip leading whitespace, try HTML/XML tag signatures         │
    │   2. Try exact binary signatures (PDF, PNG, GIF, gzip, ...)       │
    │   3. Try masked signatures (RIFF containers, ...)                 │
    │   4. No binary control bytes?  → text/plain; charset=utf-8        │
    │   5. Otherwise                 → application/octet-stream         │
    └──────────────────────────────────────────────────────────────────┘

The signature table follows the WHATWG MIME Sniffing Standard, the same
table major HTTP servers use for this purpose.

=============================================================================
"""

from typing import Callable, List, Tuple


# Only this many bytes are ever inspected
SNIFF_LENGTH = 512

DEFAULT_TEXT_TYPE = "text/plain; charset=utf-8"
DEFAULT_BINARY_TYPE = "application/octet-stream"

# Whitespace skipped before HTML/XML signatures (HTAB, LF, FF, CR, SP)
_WHITESPACE = b"\t\n\x0c\r "

# Bytes that mark content as binary (WHATWG "binary data byte")
_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1A)) + list(range(0x1C, 0x20))
)


# =============================================================================
# HTML SIGNATURES
# =============================================================================
#
# Case-insensitive, and the tag must be terminated by a space or ">" so that
# "<Bogus" does not match "<B".
#
# =============================================================================
_HTML_TAGS = [
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
]


# =============================================================================
# EXACT SIGNATURES
# =============================================================================
#
# (prefix, mime type)
#
# =============================================================================
_EXACT_SIGNATURES: List[Tuple[bytes, str]] = [
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),

    # Byte order marks
    (b"\xfe\xff", "text/plain; charset=utf-16be"),
    (b"\xff\xfe", "text/plain; charset=utf-16le"),
    (b"\xef\xbb\xbf", "text/plain; charset=utf-8"),

    # Images
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\x00\x00\x02\x00", "image/x-icon"),
    (b"BM", "image/bmp"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x89PNG\x0d\x0a\x1a\x0a", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),

    # Audio / video
    (b"OggS\x00", "application/ogg"),
    (b"ID3", "audio/mpeg"),
    (b"\x1a\x45\xdf\xa3", "video/webm"),

    # Fonts
    (b"wOFF", "font/woff"),
    (b"wOF2", "font/woff2"),

    # Archives
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"PK\x03\x04", "application/zip"),
    (b"Rar!\x1a\x07\x00", "application/x-rar-compressed"),
    (b"Rar!\x1a\x07\x01\x00", "application/x-rar-compressed"),

    (b"\x00\x61\x73\x6d", "application/wasm"),
]


# =============================================================================
# MASKED SIGNATURES
# =============================================================================
#
# (mask, pattern, mime type): data[i] & mask[i] must equal pattern[i].
# RIFF containers carry a 4-byte length between the tag and the format.
#
# =============================================================================
_MASKED_SIGNATURES: List[Tuple[bytes, bytes, str]] = [
    (
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00WEBPVP",
        "image/webp",
    ),
    (
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00WAVE",
        "audio/wave",
    ),
    (
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00AVI ",
        "video/avi",
    ),
]


def _match_html(data: bytes) -> bool:
    """Check the HTML tag table after skipping leading whitespace."""
    stripped = data.lstrip(_WHITESPACE)
    upper = stripped.upper()
    for tag in _HTML_TAGS:
        if not upper.startswith(tag):
            continue
        # Tag must be followed by a terminator
        terminator = stripped[len(tag):len(tag) + 1]
        if terminator in (b" ", b">"):
            return True
    return False


def _match_xml(data: bytes) -> bool:
    return data.lstrip(_WHITESPACE).startswith(b"<?xml")


def _match_masked(data: bytes, mask: bytes, pattern: bytes) -> bool:
    if len(data) < len(pattern):
        return False
    return all((data[i] & mask[i]) == pattern[i] for i in range(len(pattern)))


def _match_mp4(data: bytes) -> bool:
    """ISO base media file: box size, then "ftyp", then a brand."""
    if len(data) < 12:
        return False
    box_size = int.from_bytes(data[0:4], "big")
    if box_size % 4 != 0 or len(data) < box_size:
        return False
    if data[4:8] != b"ftyp":
        return False
    for start in range(8, box_size, 4):
        if start == 12:
            continue  # Minor version, not a brand
        if data[start:start + 3] == b"mp4":
            return True
    return False


def _is_text(data: bytes) -> bool:
    return not any(byte in _BINARY_BYTES for byte in data)


_MATCHERS: List[Tuple[Callable[[bytes], bool], str]] = [
    (_match_html, "text/html; charset=utf-8"),
    (_match_xml, "text/xml; charset=utf-8"),
]


def detect_content_type(data: bytes) -> str:
    """
    Detect the MIME type of the given bytes.

    Considers at most the first 512 bytes and always returns a valid MIME
    type, falling back to ``application/octet-stream``.

    Args:
        data: The leading bytes of a body (any length).

    Returns:
        The detected MIME type, with a charset for text types.

    Examples:
        >>> detect_content_type(b"<html><body>hi</body></html>")
        'text/html; charset=utf-8'
        >>> detect_content_type(b'{"ok": true}')
        'text/plain; charset=utf-8'
        >>> detect_content_type(b"\\x89PNG\\r\\n\\x1a\\n....")
        'image/png'
    """
    head = bytes(data[:SNIFF_LENGTH])

    for matcher, mime_type in _MATCHERS:
        if matcher(head):
            return mime_type

    for prefix, mime_type in _EXACT_SIGNATURES:
        if head.startswith(prefix):
            return mime_type

    for mask, pattern, mime_type in _MASKED_SIGNATURES:
        if _match_masked(head, mask, pattern):
            return mime_type

    if _match_mp4(head):
        return "video/mp4"

    if _is_text(head):
        return DEFAULT_TEXT_TYPE

    return DEFAULT_BINARY_TYPE
