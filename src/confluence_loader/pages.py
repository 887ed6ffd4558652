"""Page endpoints, pagination and conversion to documents."""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union
from urllib.parse import parse_qs, urlsplit

from .client import ApiGateway
from .document import Document
from .errors import (
    ConfluenceError,
    InvalidResponseError,
    InvalidTimestampError,
    NotFoundError,
)
from .extract import page_text
from .params import build_query_params


logger = logging.getLogger(__name__)

DEFAULT_STATUS = ["current"]
DEFAULT_BODY_FORMAT = "storage"

Params = Dict[str, Any]
ListFn = Callable[[Params], Awaitable[Dict[str, Any]]]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


async def get_pages(
    client: ApiGateway, params: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """
    List pages across all spaces.

    Args:
        client: Confluence client
        params: Semantic filters (id, space_id, status, title, sort,
            body_format, cursor, limit)

    Returns:
        Raw list response with "results" and "_links"
    """
    return await client.get("/pages", build_query_params(params))


async def get_page(
    client: ApiGateway,
    page_id: Union[str, int],
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Get a single page by ID, e.g. with {"body_format": "storage"}."""
    return await client.get(f"/pages/{page_id}", build_query_params(params))


async def get_pages_in_space(
    client: ApiGateway,
    space_key: Union[str, int],
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    List pages of one space.

    Args:
        client: Confluence client
        space_key: Space key (e.g. "PROJ") or numeric space ID
        params: Semantic filters

    Returns:
        Raw list response

    Raises:
        NotFoundError: If no space has the given key
    """
    space_id = await resolve_space_id(client, space_key)
    return await list_space_pages(client, space_id, params)


async def get_pages_for_label(
    client: ApiGateway,
    label_id: Union[str, int],
    params: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """List pages carrying a label."""
    return await client.get(f"/labels/{label_id}/pages", build_query_params(params))


async def list_space_pages(
    client: ApiGateway, space_id: int, params: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """List pages of a space by numeric ID, skipping the key lookup."""
    return await client.get(f"/spaces/{space_id}/pages", build_query_params(params))


async def resolve_space_id(client: ApiGateway, space_key: Union[str, int]) -> int:
    """
    Map a space key to its numeric ID.

    Numeric input (an int or an all-digit string) is returned without a
    lookup. Anything else is looked up by key with limit 1.

    Raises:
        NotFoundError: If the lookup returned no spaces
        InvalidResponseError: If the lookup response has no results list, or
            the first space has no numeric id
    """
    if isinstance(space_key, int):
        return space_key

    key = str(space_key)
    if key.isdecimal():
        return int(key)

    response = await client.get("/spaces", [("keys", key), ("limit", "1")])
    results = response.get("results") if isinstance(response, Mapping) else None
    if not isinstance(results, list):
        raise InvalidResponseError(f"Unexpected response looking up space '{key}'")
    if not results:
        raise NotFoundError(f"Space with key '{key}' not found")

    try:
        return int(results[0]["id"])
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidResponseError(f"Space '{key}' has no numeric id") from e


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def page_to_document(page: Mapping[str, Any]) -> Document:
    """
    Convert a raw page object to a Document.

    Useful when a page was fetched directly with get_page().
    """
    links = page.get("_links") or {}
    page_id = page.get("id")
    return Document(
        id="" if page_id is None else str(page_id),
        text=page_text(page),
        metadata={
            "title": page.get("title"),
            "space_id": page.get("spaceId"),
            "parent_id": page.get("parentId"),
            "status": page.get("status"),
            "created_at": page.get("createdAt"),
            "author_id": page.get("authorId"),
            "version": page.get("version"),
            "web_url": links.get("webui"),
            "edit_url": links.get("editui"),
        },
    )


def with_defaults(params: Optional[Mapping[str, Any]]) -> Params:
    """Copy params, adding the default status and body format if unset."""
    merged = dict(params or {})
    merged.setdefault("status", list(DEFAULT_STATUS))
    merged.setdefault("body_format", DEFAULT_BODY_FORMAT)
    return merged


def list_results(response: Any) -> List[Dict[str, Any]]:
    """
    Return the page stubs of a list response.

    A missing or null "results" is an empty page.

    Raises:
        InvalidResponseError: If the body is not an object or its results
            are not a list
    """
    if not isinstance(response, Mapping):
        raise InvalidResponseError(f"Expected a JSON object, got {type(response).__name__}")
    results = response.get("results") or []
    if not isinstance(results, list):
        raise InvalidResponseError("Expected a results list in list response")
    return results


def next_cursor(response: Mapping[str, Any]) -> Optional[str]:
    """
    Extract the cursor from a list response's next link.

    Returns None when there is no next link, or the link has no cursor.
    """
    next_link = (response.get("_links") or {}).get("next")
    if not next_link:
        return None

    query = parse_qs(urlsplit(next_link).query)
    cursors = query.get("cursor")
    if not cursors:
        logger.warning(f"Next link without cursor, stopping pagination: {next_link}")
        return None
    return cursors[0]


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


async def load_all(
    client: ApiGateway,
    list_fn: ListFn,
    params: Optional[Mapping[str, Any]] = None,
    total_limit: Optional[int] = None,
) -> List[Document]:
    """
    Walk every page of a list endpoint and hydrate each result.

    Algorithm:
    1. Call list_fn with the current params (failures propagate)
    2. Fetch each result by ID with its body; on failure keep the stub
    3. Append in server order; stop once total_limit results are collected
    4. Follow the cursor from _links.next, or stop when there is none

    A server that always answers with a next link only stops at total_limit.

    Args:
        client: Confluence client used for the per-page fetches
        list_fn: Coroutine function taking params, returning a list response
        params: Semantic parameters for the list calls
        total_limit: Maximum number of documents to return (None = all)

    Returns:
        Documents in server order
    """
    if total_limit is not None and total_limit <= 0:
        return []

    current = with_defaults(params)
    pages: List[Dict[str, Any]] = []

    while True:
        response = await list_fn(current)
        results = list_results(response)
        logger.debug(f"Fetched {len(results)} page stubs (cursor={current.get('cursor')})")

        pages.extend(await _hydrate_sequential(client, results, current["body_format"]))

        if total_limit is not None and len(pages) >= total_limit:
            pages = pages[:total_limit]
            break

        cursor = next_cursor(response)
        if cursor is None:
            break
        current = {**current, "cursor": cursor}

    return [page_to_document(page) for page in pages]


async def _hydrate_sequential(
    client: ApiGateway, stubs: List[Dict[str, Any]], body_format: str
) -> List[Dict[str, Any]]:
    """Fetch full pages one by one; a failed fetch keeps the stub."""
    hydrated = []
    for stub in stubs:
        page_id = stub.get("id")
        if page_id is None:
            logger.warning(f"Page stub without id, keeping it as is: {stub.get('title')!r}")
            hydrated.append(stub)
            continue
        try:
            hydrated.append(
                await get_page(client, page_id, {"body_format": body_format})
            )
        except ConfluenceError as e:
            logger.warning(f"Failed to fetch body of page {page_id}: {e}")
            hydrated.append(stub)
    return hydrated


async def load_documents(
    client: ApiGateway, params: Optional[Mapping[str, Any]] = None
) -> List[Document]:
    """
    Load all pages as documents.

    params["limit"] is sent as the page size and also caps the total.
    """
    total_limit = (params or {}).get("limit")

    async def list_pages(current: Params) -> Dict[str, Any]:
        return await get_pages(client, current)

    return await load_all(client, list_pages, params, total_limit)


async def load_space_documents(
    client: ApiGateway,
    space_key: Union[str, int],
    params: Optional[Mapping[str, Any]] = None,
) -> List[Document]:
    """
    Load all pages of a space as documents.

    Args:
        client: Confluence client
        space_key: Space key (e.g. "PROJ") or numeric space ID
        params: Semantic parameters; "limit" caps the total

    Raises:
        NotFoundError: If no space has the given key
    """
    total_limit = (params or {}).get("limit")
    space_id = await resolve_space_id(client, space_key)

    async def list_pages(current: Params) -> Dict[str, Any]:
        return await list_space_pages(client, space_id, current)

    return await load_all(client, list_pages, params, total_limit)


# ---------------------------------------------------------------------------
# Time window
# ---------------------------------------------------------------------------


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a datetime or ISO-8601 string into an aware datetime.

    Strings must carry a UTC offset ("Z" or "+02:00"). Naive datetime
    objects are taken as UTC.

    Raises:
        InvalidTimestampError: If the value cannot be parsed, or is a string
            without offset
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    if not isinstance(value, str):
        raise InvalidTimestampError(value)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidTimestampError(value) from e
    if parsed.tzinfo is None:
        raise InvalidTimestampError(value)
    return parsed


def _created_at(document: Document) -> Optional[datetime]:
    version = document.metadata.get("version")
    if not isinstance(version, Mapping):
        return None
    try:
        return parse_timestamp(version.get("createdAt"))
    except InvalidTimestampError:
        return None


async def load_documents_since(
    client: ApiGateway,
    space_key: Union[str, int],
    since: Union[datetime, str],
    params: Optional[Mapping[str, Any]] = None,
) -> List[Document]:
    """
    Load documents of a space whose version was created at or after a time.

    The API has no timestamp filter, so every page of the space is loaded and
    filtered client-side. A "limit" in params bounds the pages loaded before
    filtering, not the number returned.

    Args:
        client: Confluence client
        space_key: Space key or numeric space ID
        since: datetime or ISO-8601 string (e.g. "2024-01-01T00:00:00Z")
        params: Semantic parameters passed to load_space_documents

    Returns:
        Documents whose version.createdAt >= since

    Raises:
        InvalidTimestampError: If since cannot be parsed (no request is made)
    """
    since_dt = parse_timestamp(since)
    documents = await load_space_documents(client, space_key, params)

    filtered = []
    for doc in documents:
        created_at = _created_at(doc)
        if created_at is not None and created_at >= since_dt:
            filtered.append(doc)

    logger.debug(f"{len(filtered)} of {len(documents)} documents created since {since_dt}")
    return filtered
