"""Route live queue messages to per-repository handlers on one event loop."""

from __future__ import annotations

import asyncio
import threading
import typing as typ

from trawler.logging import get_logger, log_info, log_warning

from .gate import PauseGate
from .handler import MessageHandler

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from trawler.config.models import Repository
    from trawler.github import GitHubIssuesClient
    from trawler.store import TransformingStore

    from .handler import QueueMessage

logger = get_logger(__name__)


class LiveConsumer:
    """Dispatch queue messages to the handler of their repository.

    Every handler shares the consumer's :class:`PauseGate`, so
    :meth:`run_paused` quiesces live processing across all repositories.
    """

    def __init__(
        self,
        handlers: cabc.Mapping[str, MessageHandler],
        pause_gate: PauseGate,
    ) -> None:
        """Bind handlers keyed by repository slug and the gate they share."""
        self._handlers = dict(handlers)
        self._pause_gate = pause_gate

    @classmethod
    def build(
        cls,
        repositories: cabc.Iterable[Repository],
        *,
        client: GitHubIssuesClient,
        store: TransformingStore,
        pause_gate: PauseGate | None = None,
    ) -> LiveConsumer:
        """Create one handler per repository around a single shared gate."""
        gate = pause_gate or PauseGate()
        handlers = {
            repo.slug: MessageHandler(client, repo, store, gate)
            for repo in repositories
        }
        return cls(handlers, gate)

    @property
    def pause_gate(self) -> PauseGate:
        """The gate shared by every handler."""
        return self._pause_gate

    @property
    def repositories(self) -> tuple[str, ...]:
        """Slugs of the repositories with a handler, sorted."""
        return tuple(sorted(self._handlers))

    def handler_for(self, slug: str) -> MessageHandler | None:
        """Return the handler for ``slug`` if the repository is configured."""
        return self._handlers.get(slug)

    async def dispatch(self, repository: str, message: QueueMessage) -> None:
        """Handle ``message`` with the handler configured for ``repository``.

        Messages for unconfigured repositories are logged and acknowledged;
        redelivering them would never succeed.
        """
        handler = self.handler_for(repository)
        if handler is None:
            log_warning(
                logger, "dropping message for unconfigured repository %s", repository
            )
            return
        await handler.handle_message(message)

    async def run_paused[T](
        self, operation: cabc.Callable[[], cabc.Awaitable[T]]
    ) -> T:
        """Run ``operation`` while every live handler is held off."""
        async with self._pause_gate.exclusive():
            log_info(logger, "live processing paused")
            try:
                return await operation()
            finally:
                log_info(logger, "live processing resumed")


class LiveRuntime:
    """A background event loop that worker threads submit coroutines to.

    Dramatiq runs actors on plain threads. Funnelling every live coroutine
    into one loop lets handlers share the asyncio pause gate, the HTTP client
    and the database engine.
    """

    def __init__(self, *, name: str = "trawler-live") -> None:
        """Start the loop thread."""
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name=name, daemon=True)
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    @property
    def running(self) -> bool:
        """True while the loop thread is alive."""
        return self._thread.is_alive()

    def run[T](self, coro: cabc.Coroutine[typ.Any, typ.Any, T]) -> T:
        """Run ``coro`` on the background loop and wait for its result.

        Exceptions raised by the coroutine are re-raised in the caller's
        thread.
        """
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result()

    def close(self) -> None:
        """Stop the loop and join its thread."""
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()
