import re

# XML 1.0 forbids these; tab (0x09), LF (0x0A) and CR (0x0D) stay
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

_NAMED_ENTITIES = [
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&apos;", "'"),
]
_HEX_REFERENCE = re.compile(r"&#x([0-9A-Fa-f]+);")
_DEC_REFERENCE = re.compile(r"&#(\d+);")


def _char_or_original(match: re.Match, base: int) -> str:
    try:
        code = int(match.group(1), base)
        # Lone surrogates cannot be encoded as UTF-8
        if 0xD800 <= code <= 0xDFFF:
            return match.group(0)
        return chr(code)
    except (ValueError, OverflowError):
        return match.group(0)


def decode_html_entities(text: str) -> str:
    """
    Replace markup character references with literal characters.
    Examples: '&lt;rss&gt;' -> '<rss>', '&#60;' -> '<', '&#x3C;' -> '<'

    Named references go first, then hex, then decimal. Each is a single
    pass, so '&amp;#60;' becomes '&#60;' and then '<'. References outside
    the Unicode range are left as they are.
    """
    if not text:
        return text

    for entity, char in _NAMED_ENTITIES:
        text = text.replace(entity, char)

    text = _HEX_REFERENCE.sub(lambda m: _char_or_original(m, 16), text)
    return _DEC_REFERENCE.sub(lambda m: _char_or_original(m, 10), text)


def sanitize_xml(text: str) -> str:
    """Strip control characters that are invalid in XML 1.0."""
    if not text:
        return text
    return _INVALID_XML_CHARS.sub("", text)
