"""Plain-text extraction from Confluence page bodies.

A page body comes back in whichever representation was requested with the
``body-format`` parameter, each nested under its own key:

    {"storage": {"value": "<p>...</p>", "representation": "storage"}}
    {"view": {"value": "<p>...</p>", "representation": "view"}}
    {"atlas_doc_format": {"value": "{...}", "representation": "atlas_doc_format"}}

``parse_body`` turns the raw payload into one of the ``PageBody`` variants
and ``extract_text`` maps every variant to a string. Storage and view bodies
are markup and get stripped; the Atlassian document format is returned as-is.
"""

import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union


@dataclass(frozen=True)
class StorageBody:
    """Storage-format XHTML."""
    html: str


@dataclass(frozen=True)
class ViewBody:
    """Rendered HTML."""
    html: str


@dataclass(frozen=True)
class AtlasDocBody:
    """Atlassian document format, kept verbatim."""
    content: str


@dataclass(frozen=True)
class NoBody:
    """No body was requested, or the payload had an unknown shape."""


PageBody = Union[StorageBody, ViewBody, AtlasDocBody, NoBody]

_SCRIPT_RE = re.compile(r"<script.*?</script>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style.*?</style>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_NUMERIC_ENTITY_RE = re.compile(r"&#(\d+);")
_WHITESPACE_RE = re.compile(r"\s+")

# Applied in order; &amp; comes after &lt;/&gt; so "&amp;lt;" decodes to a literal "&lt;"
NAMED_ENTITIES = (
    ("&nbsp;", " "),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    # Portuguese / Latin letters
    ("&ccedil;", "ç"),
    ("&Ccedil;", "Ç"),
    ("&atilde;", "ã"),
    ("&Atilde;", "Ã"),
    ("&otilde;", "õ"),
    ("&Otilde;", "Õ"),
    ("&aacute;", "á"),
    ("&Aacute;", "Á"),
    ("&eacute;", "é"),
    ("&Eacute;", "É"),
    ("&iacute;", "í"),
    ("&Iacute;", "Í"),
    ("&oacute;", "ó"),
    ("&Oacute;", "Ó"),
    ("&uacute;", "ú"),
    ("&Uacute;", "Ú"),
    ("&agrave;", "à"),
    ("&Agrave;", "À"),
    ("&acirc;", "â"),
    ("&Acirc;", "Â"),
    ("&ecirc;", "ê"),
    ("&Ecirc;", "Ê"),
    ("&ocirc;", "ô"),
    ("&Ocirc;", "Ô"),
    # Typographic
    ("&mdash;", "—"),
    ("&ndash;", "–"),
    ("&hellip;", "..."),
    ("&euro;", "€"),
    ("&pound;", "£"),
    ("&copy;", "©"),
    ("&reg;", "®"),
    ("&trade;", "™"),
)

MAX_CODE_POINT = 0x10FFFF


def parse_body(raw: Any) -> PageBody:
    """
    Classify a raw ``body`` payload.

    Checked in priority order: storage, view, atlas_doc_format. A variant
    only matches when its ``value`` is a string.

    Args:
        raw: The page's ``body`` field (may be None)

    Returns:
        The matching PageBody variant, NoBody if none matches
    """
    if not isinstance(raw, Mapping):
        return NoBody()

    html = _value_of(raw, "storage")
    if html is not None:
        return StorageBody(html)

    html = _value_of(raw, "view")
    if html is not None:
        return ViewBody(html)

    content = _value_of(raw, "atlas_doc_format")
    if content is not None:
        return AtlasDocBody(content)

    return NoBody()


def _value_of(raw: Mapping[str, Any], key: str) -> Optional[str]:
    section = raw.get(key)
    if isinstance(section, Mapping) and isinstance(section.get("value"), str):
        return section["value"]
    return None


def extract_text(body: PageBody) -> str:
    """Return the plain text of a parsed body."""
    if isinstance(body, (StorageBody, ViewBody)):
        return strip_html(body.html)
    if isinstance(body, AtlasDocBody):
        return body.content
    return ""


def page_text(page: Mapping[str, Any]) -> str:
    """Extract plain text from a raw page object."""
    return extract_text(parse_body(page.get("body")))


def strip_html(html: str) -> str:
    """
    Convert markup to a single line of plain text.

    Drops script and style blocks, replaces every remaining tag with a space,
    decodes entities, then collapses whitespace. Decoding happens before the
    collapse so entity-produced spaces (&nbsp;) collapse too.
    """
    text = _SCRIPT_RE.sub("", html)
    text = _STYLE_RE.sub("", text)
    text = _TAG_RE.sub(" ", text)
    text = decode_entities(text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def decode_entities(text: str) -> str:
    """Decode the named entity table, then decimal numeric references."""
    for entity, char in NAMED_ENTITIES:
        text = text.replace(entity, char)
    return _NUMERIC_ENTITY_RE.sub(_decode_numeric, text)


def _decode_numeric(match: "re.Match[str]") -> str:
    code = int(match.group(1))
    # Surrogates cannot be encoded on their own, leave them untouched
    if 0 < code <= MAX_CODE_POINT and not 0xD800 <= code <= 0xDFFF:
        return chr(code)
    return match.group(0)
