"""
Background load pipeline.

Fetches an issue archive, persists it into the session's scratch
directory, unpacks it and indexes its pages. Progress text travels over
the session's single-slot status channel to a draining loop that also
prints a heartbeat after every silent interval.
"""

import asyncio
import logging
from typing import Protocol

import httpx

from .archive import count_pages, extract_archive
from .config import DEFAULT_USER_AGENT, FETCH_TIMEOUT, FIRST_PAGE, HEARTBEAT, HEARTBEAT_INTERVAL
from .errors import FetchError, PersistError, PhrackedError, PipelineBusyError
from .session import DONE, Session

logger = logging.getLogger(__name__)


class Display(Protocol):
    """What the pipeline needs from the terminal UI."""

    def clear_status(self) -> None: ...

    def append_status(self, text: str) -> None: ...

    def set_title(self, title: str) -> None: ...

    async def rebuild_pages(self, pages: int) -> None: ...

    def show_page(self, name: str) -> None: ...


async def _in_thread(func, *args):
    """Run blocking work in a thread; a cancelled caller still waits for it."""
    future = asyncio.ensure_future(asyncio.to_thread(func, *args))
    try:
        return await asyncio.shield(future)
    except asyncio.CancelledError:
        await asyncio.wait([future])
        raise


def _interrupt(status: asyncio.Queue) -> None:
    """Replace whatever is pending on the channel with the terminal marker."""
    while not status.empty():
        status.get_nowait()
    status.put_nowait(DONE)


class LoadPipeline:
    """
    Single-flight fetch, persist, unpack and index sequence.

    Attributes:
        display: UI collaborator receiving status text and page updates
        transport: Optional httpx transport (tests inject a MockTransport)
        heartbeat: Seconds of silence before a filler is printed
        timeout: Network timeout in seconds
    """

    def __init__(self, display: Display, transport: httpx.AsyncBaseTransport | None = None,
                 heartbeat: float = HEARTBEAT_INTERVAL, timeout: float = FETCH_TIMEOUT) -> None:
        self.display = display
        self.transport = transport
        self.heartbeat = heartbeat
        self.timeout = timeout
        self._running = False
        self._stages: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._running

    async def run(self, session: Session) -> None:
        """
        Load session's issue end to end.

        Raises:
            PipelineBusyError: If another run is in progress
            PhrackedError: If a stage failed (the session is already released)
        """
        if self._running:
            raise PipelineBusyError(session.issue)
        self.display.clear_status()
        self.display.set_title(f"Phrack Issue #{session.issue}")

        self._running = True
        stages = asyncio.create_task(self._run_stages(session))
        self._stages = stages
        drained = False
        try:
            await self.drain(session.status)
            drained = True
        finally:
            if not drained:
                stages.cancel()
            await asyncio.wait([stages])
            self._running = False
        if not stages.cancelled():
            stages.result()

    async def stop(self) -> None:
        """Cancel an in-flight load and wait until it has wound down."""
        stages = self._stages
        if stages is None or stages.done():
            return
        logger.info("Cancelling in-flight load")
        stages.cancel()
        await asyncio.wait([stages])

    async def drain(self, status: asyncio.Queue) -> None:
        """Forward status messages to the display until the terminal marker."""
        while True:
            try:
                message = await asyncio.wait_for(status.get(), timeout=self.heartbeat)
            except asyncio.TimeoutError:
                self.display.append_status(HEARTBEAT)
                continue
            if message is DONE:
                return
            self.display.append_status(message)

    async def _run_stages(self, session: Session) -> None:
        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=self.timeout,
                follow_redirects=True,
                headers={"User-Agent": DEFAULT_USER_AGENT},
            ) as client:
                response = await self.fetch(client, session)
                try:
                    await self.persist(response, session)
                finally:
                    await response.aclose()
            await self.unpack(session)
            await self.index(session)
        except asyncio.CancelledError:
            _interrupt(session.status)
            raise
        except Exception as e:
            logger.error("Loading issue %s failed: %s", session.issue, e,
                         exc_info=not isinstance(e, PhrackedError))
            session.release()
            await session.status.put(DONE)
            raise
        await session.status.put(DONE)

    # ── Stages ─────────────────────────────────────────────────

    async def fetch(self, client: httpx.AsyncClient, session: Session) -> httpx.Response:
        await session.status.put(f"Fetching {session.url}...")
        try:
            response = await client.send(client.build_request("GET", session.url), stream=True)
        except (httpx.HTTPError, OSError) as e:
            raise FetchError(session.url, str(e) or type(e).__name__) from e
        if response.is_error:
            await response.aclose()
            raise FetchError(session.url, f"HTTP {response.status_code}")
        await session.status.put("\nDownload Complete...\n")
        return response

    async def persist(self, response: httpx.Response, session: Session) -> None:
        try:
            async for chunk in response.aiter_bytes():
                await _in_thread(session.archive_file.write, chunk)
            await _in_thread(session.archive_file.flush)
        except (httpx.HTTPError, OSError, ValueError) as e:
            raise PersistError(session.archive_path, str(e)) from e
        await session.status.put(f"Wrote to {session.archive_path}\n")

    async def unpack(self, session: Session) -> None:
        await session.status.put("Unpacking tar.gz...")
        await _in_thread(extract_archive, session.archive_path, session.scratch_dir)
        await session.status.put("Issue unpacked\n")

    async def index(self, session: Session) -> None:
        await session.status.put("Building UI\n")
        session.pages = await _in_thread(count_pages, session.scratch_dir)
        logger.info("Issue %s has %d pages", session.issue, session.pages)
        await self.display.rebuild_pages(session.pages)
        self.display.show_page(FIRST_PAGE)
