"""Shared fixtures: a fake Confluence client routing GETs to canned responses.

Tests run fully offline. Handlers receive the request path and the query
parameters as a dict and return the decoded JSON, or raise to simulate
errors. Handlers may also be coroutine functions.
"""

import inspect
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from confluence_loader.client import ConfluenceClient


def make_page(
    page_id: str,
    html: Optional[str] = None,
    created_at: Optional[str] = "2024-01-15T10:00:00Z",
    **extra: Any,
) -> Dict[str, Any]:
    """Build a raw page as returned by /pages/{id}."""
    page: Dict[str, Any] = {
        "id": page_id,
        "title": f"Page {page_id}",
        "spaceId": "123",
        "parentId": None,
        "status": "current",
        "createdAt": "2024-01-01T00:00:00Z",
        "authorId": "user-1",
        "version": {"number": 1, "createdAt": created_at} if created_at else {"number": 1},
        "_links": {
            "webui": f"/spaces/TEST/pages/{page_id}",
            "editui": f"/pages/resumedraft.action?draftId={page_id}",
        },
    }
    if html is not None:
        page["body"] = {"storage": {"value": html, "representation": "storage"}}
    page.update(extra)
    return page


def list_response(
    ids: List[str], cursor: Optional[str] = None, **page_fields: Any
) -> Dict[str, Any]:
    """Build a list response with stubs (no body) and an optional next link."""
    response: Dict[str, Any] = {
        "results": [{"id": i, "title": f"Page {i}", **page_fields} for i in ids],
        "_links": {},
    }
    if cursor is not None:
        response["_links"]["next"] = f"/wiki/api/v2/pages?limit=2&cursor={cursor}"
    return response


class FakeConfluence:
    """Records GET calls and delegates them to a handler."""

    def __init__(self, handler):
        self.handler = handler
        self.client = MagicMock(spec=ConfluenceClient)
        self.client.get = AsyncMock(side_effect=self._get)

    async def _get(self, path, params=None):
        result = self.handler(path, dict(params or []))
        if inspect.isawaitable(result):
            result = await result
        return result

    @property
    def calls(self):
        """(path, params dict) for every GET made so far."""
        return [
            (c.args[0], dict(c.args[1] if len(c.args) > 1 else []))
            for c in self.client.get.call_args_list
        ]

    def paths(self):
        return [path for path, _ in self.calls]


@pytest.fixture
def fake_confluence():
    """Factory: fake_confluence(handler) -> FakeConfluence."""
    return FakeConfluence
