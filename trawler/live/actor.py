"""Dramatiq actor feeding queued GitHub webhooks into the live handlers.

Run a worker with::

    TRAWLER_CONFIG=trawler.yaml dramatiq trawler.live.actor

Publishers enqueue one message per webhook delivery:

>>> ingest_github_event.send("octo/reef", body_json)

"""

from __future__ import annotations

import threading
import time

import dramatiq
from dramatiq.middleware import CurrentMessage

from trawler.bootstrap import build_services
from trawler.config import load_config_from_env
from trawler.logging import get_logger, log_debug

from ._broker import configure_broker
from .consumer import LiveConsumer, LiveRuntime
from .handler import QueueMessage

LIVE_QUEUE_NAME = "trawler-live"

_NANOS_PER_MILLI = 1_000_000
_MAX_RETRIES = 10

_RUNTIME_LOCK = threading.Lock()
_RUNTIME: tuple[LiveRuntime, LiveConsumer] | None = None

logger = get_logger(__name__)

_broker = configure_broker()


async def _build_consumer_from_env() -> LiveConsumer:
    config = load_config_from_env()
    services = await build_services(config)
    return LiveConsumer.build(
        config.repositories, client=services.client, store=services.store
    )


def _get_or_create_live_runtime() -> tuple[LiveRuntime, LiveConsumer]:
    """Return the process-wide runtime and consumer, creating them once.

    Thread-safe: Dramatiq worker threads race for the first message.
    """
    global _RUNTIME
    with _RUNTIME_LOCK:
        if _RUNTIME is None:
            runtime = LiveRuntime()
            try:
                consumer = runtime.run(_build_consumer_from_env())
            except BaseException:
                runtime.close()
                raise
            _RUNTIME = (runtime, consumer)
        return _RUNTIME


def _receipt_timestamp_ns() -> int:
    """Return the enqueue time of the message being processed, in ns."""
    current = CurrentMessage.get_current_message()
    if current is None:
        log_debug(logger, "no current message; using wall clock as receipt time")
        return time.time_ns()
    return int(current.message_timestamp) * _NANOS_PER_MILLI


@dramatiq.actor(broker=_broker, queue_name=LIVE_QUEUE_NAME, max_retries=_MAX_RETRIES)
def ingest_github_event(repository: str, body: str) -> None:
    """Index one GitHub webhook delivery for ``repository``.

    Parameters
    ----------
    repository
        ``owner/name`` slug of the configured repository.
    body
        Webhook JSON including the ``X-GitHub-Event`` and
        ``X-GitHub-Delivery`` envelope fields.

    Raises
    ------
    Exception
        Any handler failure, so Dramatiq retries the message.

    """
    message = QueueMessage(body=body.encode("utf-8"), timestamp=_receipt_timestamp_ns())
    runtime, consumer = _get_or_create_live_runtime()
    runtime.run(consumer.dispatch(repository, message))
