"""Fetch Confluence pages and convert them into LLM-ready documents."""

from .client import ApiGateway, ConfluenceClient
from .config import Settings, settings
from .document import Document
from .errors import (
    ApiError,
    ConfluenceError,
    FetchTimeoutError,
    InvalidResponseError,
    InvalidTimestampError,
    NotFoundError,
    TransportError,
)
from .pages import (
    get_page,
    get_pages,
    get_pages_for_label,
    get_pages_in_space,
    load_all,
    load_documents,
    load_documents_since,
    load_space_documents,
    page_to_document,
    resolve_space_id,
)
from .stream import SpaceDocumentStream, stream_space_documents

__all__ = [
    "ApiError",
    "ApiGateway",
    "ConfluenceClient",
    "ConfluenceError",
    "Document",
    "FetchTimeoutError",
    "InvalidResponseError",
    "InvalidTimestampError",
    "NotFoundError",
    "Settings",
    "SpaceDocumentStream",
    "TransportError",
    "get_page",
    "get_pages",
    "get_pages_for_label",
    "get_pages_in_space",
    "load_all",
    "load_documents",
    "load_documents_since",
    "load_space_documents",
    "page_to_document",
    "resolve_space_id",
    "settings",
    "stream_space_documents",
]
