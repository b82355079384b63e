import re
from urllib.parse import urlparse

REPLACEMENT_CHAR = "\ufffd"

# Anything outside the XML 1.0 Char production.
# https://www.w3.org/TR/xml/#charsets
_XML_UNSUPPORTED_CHAR = re.compile("[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")
_CHAR_REFERENCE = re.compile(r"&#(?:x([0-9a-fA-F]+)|([0-9]+));")


def sanitize_url(url: str | None) -> str | None:
    if not url:
        return url
    parsed = urlparse(url)
    if parsed.username or parsed.password:
        return parsed._replace(netloc=f"***@{parsed.hostname}{':%d' % parsed.port if parsed.port else ''}").geturl()
    return url


def strip_credentials(url: str) -> tuple[str, str | None, str | None]:
    """
    Split user info out of a URL.

    Returns the URL without credentials, followed by the username and
    password found in it (``None`` when absent).
    """
    parsed = urlparse(url)
    if not parsed.username and not parsed.password:
        return url, None, None

    clean_netloc = parsed.hostname or ""
    if ":" in clean_netloc:
        clean_netloc = f"[{clean_netloc}]"
    if parsed.port:
        clean_netloc = f"{clean_netloc}:{parsed.port}"

    return parsed._replace(netloc=clean_netloc).geturl(), parsed.username, parsed.password


def _is_xml_char(codepoint: int) -> bool:
    return (
        codepoint in (0x9, 0xA, 0xD)
        or 0x20 <= codepoint <= 0xD7FF
        or 0xE000 <= codepoint <= 0xFFFD
        or 0x10000 <= codepoint <= 0x10FFFF
    )


def _replace_reference(match: re.Match) -> str:
    hex_digits, dec_digits = match.groups()
    codepoint = int(hex_digits, 16) if hex_digits else int(dec_digits)
    if _is_xml_char(codepoint):
        return match.group(0)
    return REPLACEMENT_CHAR


def replace_xml_unsupported_chars(body: bytes) -> bytes:
    """
    Replace characters an XML parser would reject with U+FFFD.

    Process output read back from supervisord can contain control codes
    such as ESC (U+001B). Expat refuses those, whether raw or written as
    a character reference, and the whole reply would fail to decode.
    """
    text = body.decode("utf-8", errors="replace")
    text = _XML_UNSUPPORTED_CHAR.sub(REPLACEMENT_CHAR, text)
    text = _CHAR_REFERENCE.sub(_replace_reference, text)
    return text.encode("utf-8")
