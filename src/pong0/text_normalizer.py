"""
Normalization applied to every string extracted from a ping0.cc page.
"""

import html
import re

# Escaped entity variants that survive html.unescape: the page's script
# blocks write an ampersand as the JavaScript escape \u0026.
ENTITY_VARIANTS = {
    "\\u0026mdash;": "—",
    "\\u0026#8212;": "—",
}

PLACEHOLDER_PATTERN = re.compile(r"\{\{[^}]*\}\}")
WHITESPACE_PATTERN = re.compile(r"\s+")


def decode_entities(text: str) -> str:
    """Decode standard HTML entities plus the escaped em-dash variants."""
    decoded = html.unescape(text)
    for entity, replacement in ENTITY_VARIANTS.items():
        if entity in decoded:
            decoded = decoded.replace(entity, replacement)
    return decoded


def strip_placeholders(text: str) -> str:
    """Remove unrendered {{...}} template expressions."""
    return PLACEHOLDER_PATTERN.sub("", text)


def collapse_whitespace(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def normalize_text(text: str) -> str:
    """
    Clean one extracted value.

    Placeholders are removed first, then entities decoded, then whitespace
    runs collapsed and the ends trimmed. None-safe: empty input gives "".
    """
    if not text:
        return ""
    return collapse_whitespace(decode_entities(strip_placeholders(text)))
