"""Live message handler: queue message to indexed live document."""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

from trawler.common.time import datetime_from_unix_nanos
from trawler.events import LABELS_ATTRIBUTE, Blob, EventKind
from trawler.github.errors import GitHubAPIError, GitHubResponseShapeError
from trawler.logging import get_logger, log_debug, log_error, log_info
from trawler.store import Destination

from .errors import EnrichmentError

if typ.TYPE_CHECKING:
    from trawler.config.models import Repository
    from trawler.github import GitHubIssuesClient
    from trawler.store import TransformingStore

    from .gate import PauseGate

logger = get_logger(__name__)


class PartialMessage(msgspec.Struct, frozen=True):
    """Envelope fields needed to route a queued webhook body."""

    event: str = msgspec.field(name="X-GitHub-Event")
    delivery: str = msgspec.field(name="X-GitHub-Delivery")


_ENVELOPE_DECODER = msgspec.json.Decoder(PartialMessage)


@dataclasses.dataclass(frozen=True, slots=True)
class QueueMessage:
    """A message as delivered by the queue.

    Attributes
    ----------
    body
        Raw webhook JSON, including the ``X-GitHub-Event`` and
        ``X-GitHub-Delivery`` envelope fields.
    timestamp
        Queue receipt time in nanoseconds since the Unix epoch.

    """

    body: bytes
    timestamp: int


class MessageHandler:
    """Turn queued webhook notifications for one repository into documents.

    Raising from :meth:`handle_message` asks the queue to redeliver; returning
    normally acknowledges the message, including messages that are dropped on
    purpose.
    """

    def __init__(
        self,
        client: GitHubIssuesClient,
        repo: Repository,
        store: TransformingStore,
        pause_gate: PauseGate,
    ) -> None:
        """Bind the handler to its repository and shared collaborators."""
        self._client = client
        self._repo = repo
        self._store = store
        self._pause_gate = pause_gate

    @property
    def repository(self) -> Repository:
        """The repository this handler indexes events for."""
        return self._repo

    async def handle_message(self, message: QueueMessage) -> None:
        """Decode, enrich and index one queue message.

        A body that does not decode as an envelope will never decode on a
        retry, so it is logged and acknowledged rather than raised.
        """
        async with self._pause_gate.shared():
            try:
                partial = _ENVELOPE_DECODER.decode(message.body)
            except msgspec.DecodeError as exc:
                log_error(
                    logger,
                    "dropping undecodable message for %s: %s",
                    self._repo.pretty_name,
                    exc,
                )
                return
            await self._handle_event(
                message.timestamp, partial.event, partial.delivery, message.body
            )

    async def _handle_event(
        self, timestamp: int, event: str, delivery: str, payload: bytes
    ) -> None:
        if not self._repo.is_subscribed(event):
            log_debug(
                logger,
                "ignoring event %r for repository %s",
                event,
                self._repo.pretty_name,
            )
            return
        log_info(
            logger, "receive event %r for repository %s", event, self._repo.pretty_name
        )

        blob = Blob.from_payload(event, delivery, payload)
        try:
            await self.prepare_for_storage(blob)
        except EnrichmentError as exc:
            log_error(logger, "preparing event %r for storage: %s", event, exc)
            raise

        # Receipt time rather than now, so a backlog drained late keeps its
        # original ordering.
        blob.timestamp = datetime_from_unix_nanos(timestamp)
        await self._store.index(Destination.LIVE, self._repo, blob)

    async def prepare_for_storage(self, blob: Blob) -> None:
        """Complete attributes the index requires but the payload lacks.

        Pull request payloads without ``pull_request.labels`` get the label
        listing from GitHub attached at that path.

        Raises
        ------
        EnrichmentError
            If GitHub cannot be queried.
        BlobAttributeError
            If the pull request number is missing or not an integer.

        """
        if blob.kind is not EventKind.PULL_REQUEST or blob.has_attribute(
            LABELS_ATTRIBUTE
        ):
            return

        number = blob.get_int("number")
        log_debug(logger, "fetching labels for %s #%d", self._repo.pretty_name, number)
        try:
            labels = await self._client.list_labels(self._repo, number)
        except (GitHubAPIError, GitHubResponseShapeError) as exc:
            raise EnrichmentError.labels(number, exc) from exc

        blob.push(LABELS_ATTRIBUTE, list(labels))
