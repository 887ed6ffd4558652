"""Batch streaming of space documents with bounded concurrent hydration."""

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Any, Deque, Dict, List, Mapping, Optional, Union

from .client import ApiGateway
from .document import Document
from .errors import ConfluenceError, FetchTimeoutError
from .pages import (
    get_page,
    list_results,
    list_space_pages,
    next_cursor,
    page_to_document,
    resolve_space_id,
    with_defaults,
)


logger = logging.getLogger(__name__)

BATCH_SIZE = 4
MAX_CONCURRENCY = 4
FETCH_TIMEOUT = 30.0  # seconds, per body fetch


class StreamState(Enum):
    INIT = "init"
    FILLING = "filling"
    DONE = "done"


class SpaceDocumentStream:
    """
    Lazy, single-use async iterator over batches of space documents.

    Only one list page of stubs plus one batch is held in memory. Each batch
    is hydrated with up to max_concurrency concurrent body fetches; a failed
    fetch yields the stub without body (empty text) while a fetch that times
    out is dropped from the batch.

    Example:
        async for batch in stream_space_documents(client, "PROJ"):
            for doc in batch:
                print(doc.metadata["title"])
    """

    def __init__(
        self,
        client: ApiGateway,
        space_key: Union[str, int],
        params: Optional[Mapping[str, Any]] = None,
        batch_size: int = BATCH_SIZE,
        max_concurrency: int = MAX_CONCURRENCY,
        fetch_timeout: float = FETCH_TIMEOUT,
    ):
        self.client = client
        self.space_key = space_key
        self.params = with_defaults(params)
        self.batch_size = batch_size
        self.max_concurrency = max_concurrency
        self.fetch_timeout = fetch_timeout

        self.space_id: Optional[int] = None
        self.cursor: Optional[str] = None
        self.buffer: Deque[Dict[str, Any]] = deque()
        self.finished = False
        self.state = StreamState.INIT

    def __aiter__(self) -> "SpaceDocumentStream":
        return self

    async def __anext__(self) -> List[Document]:
        batch = await self.advance()
        if batch is None:
            raise StopAsyncIteration
        return batch

    async def advance(self) -> Optional[List[Document]]:
        """
        Produce the next batch.

        Returns:
            Up to batch_size documents in server order, or None once the
            stream is exhausted

        Raises:
            ConfluenceError: If resolving the space or listing a page failed;
                the stream is finished afterwards
        """
        while self.state is not StreamState.DONE:
            try:
                if self.state is StreamState.INIT:
                    self.space_id = await resolve_space_id(self.client, self.space_key)
                    self.state = StreamState.FILLING
                await self._fill()
            except Exception:
                self.state = StreamState.DONE
                raise

            if not self.buffer:
                self.state = StreamState.DONE
                break

            count = min(self.batch_size, len(self.buffer))
            stubs = [self.buffer.popleft() for _ in range(count)]
            batch = await self._hydrate(stubs)
            # Every fetch of this batch timed out, move on to the next one
            if batch:
                return batch

        return None

    async def _fill(self) -> None:
        """List pages until a full batch is buffered or the space is exhausted."""
        while len(self.buffer) < self.batch_size and not self.finished:
            params = dict(self.params)
            if self.cursor is not None:
                params["cursor"] = self.cursor

            response = await list_space_pages(self.client, self.space_id, params)
            results = list_results(response)
            self.buffer.extend(results)
            self.cursor = next_cursor(response)
            self.finished = self.cursor is None
            logger.debug(
                f"Buffered {len(results)} stubs from space {self.space_id} "
                f"({len(self.buffer)} pending, finished={self.finished})"
            )

    async def _hydrate(self, stubs: List[Dict[str, Any]]) -> List[Document]:
        """Fetch bodies concurrently, keeping stub order."""
        semaphore = asyncio.Semaphore(self.max_concurrency)
        body_params = {"body_format": self.params["body_format"]}

        def without_body(stub: Dict[str, Any]) -> Dict[str, Any]:
            return {key: value for key, value in stub.items() if key != "body"}

        async def fetch(stub: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            page_id = stub.get("id")
            if page_id is None:
                logger.warning(f"Page stub without id, keeping it without body: {stub.get('title')!r}")
                return without_body(stub)

            async with semaphore:
                try:
                    return await asyncio.wait_for(
                        get_page(self.client, page_id, body_params),
                        timeout=self.fetch_timeout,
                    )
                except (asyncio.TimeoutError, FetchTimeoutError):
                    logger.warning(f"Timed out fetching page {page_id}, dropping it")
                    return None
                except ConfluenceError as e:
                    logger.warning(f"Failed to fetch body of page {page_id}: {e}")
                    return without_body(stub)

        # gather returns results in submission order, not completion order
        pages = await asyncio.gather(*(fetch(stub) for stub in stubs))
        return [page_to_document(page) for page in pages if page is not None]


def stream_space_documents(
    client: ApiGateway,
    space_key: Union[str, int],
    params: Optional[Mapping[str, Any]] = None,
) -> SpaceDocumentStream:
    """
    Stream documents of a space in batches of 4.

    Nothing is fetched until the first batch is requested.

    Args:
        client: Confluence client
        space_key: Space key (e.g. "PROJ") or numeric space ID
        params: Semantic parameters for the list calls ("limit" is the
            list page size)

    Returns:
        SpaceDocumentStream to iterate with ``async for``
    """
    return SpaceDocumentStream(client, space_key, params)
