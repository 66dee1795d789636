"""
Locate the RSS payload in what a browser rendered for the feed URL.

Browsers present a raw feed in one of three ways:
- the XML as literal text inside a <pre> element (XML viewer / plain text view)
- the <rss> tree reflowed straight into the page markup, without the
  XML declaration
- the literal text inside <pre> still carrying escaped entities
Each is tried in that order.
"""

import re
from typing import Optional

from feedgrab.fetch.utils import decode_html_entities

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
RSS_MARKER = "<rss"

# Greedy on purpose: first <rss through the last </rss> in the document
_RSS_BLOCK = re.compile(r"<rss[\s\S]*</rss>", re.IGNORECASE)


def extract_rss_content(preformatted: Optional[str], full_document: Optional[str]) -> Optional[str]:
    """Return the normalized feed payload, or None when no feed root is found."""
    if preformatted and RSS_MARKER in preformatted:
        return preformatted.strip()

    match = _RSS_BLOCK.search(full_document or "")
    if match:
        return XML_DECLARATION + "\n" + match.group(0)

    if preformatted:
        decoded = decode_html_entities(preformatted)
        if RSS_MARKER in decoded:
            return decoded.strip()

    return None
