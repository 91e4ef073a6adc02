"""Broker configuration helpers for the live ingestion actor."""

from __future__ import annotations

import os
import sys
import threading
import typing as typ

import dramatiq
from dramatiq.brokers.stub import StubBroker
from dramatiq.middleware import CurrentMessage

if typ.TYPE_CHECKING:
    from dramatiq import Broker

ALLOW_STUB_BROKER_ENV = "TRAWLER_ALLOW_STUB_BROKER"

_BROKER_LOCK = threading.Lock()


def _is_running_tests() -> bool:
    """Return True when the process runs under pytest."""
    return "pytest" in sys.modules or any(
        key in os.environ
        for key in ["PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_ADDOPTS"]
    )


def _should_use_stub_broker() -> bool:
    """Return True when a StubBroker may stand in for a real broker.

    Either ``TRAWLER_ALLOW_STUB_BROKER`` is truthy or the process is a test
    run.
    """
    allow_stub = os.environ.get(ALLOW_STUB_BROKER_ENV, "")
    return allow_stub.lower() in {"1", "true", "yes"} or _is_running_tests()


def _resolve_broker() -> Broker:
    try:
        return dramatiq.get_broker()
    except ImportError as exc:
        # The default RabbitMQ broker needs pika.
        if not _should_use_stub_broker():
            message = (
                "No Dramatiq broker configured. "
                f"Set {ALLOW_STUB_BROKER_ENV}=1 for "
                "local/test runs or configure a real broker."
            )
            raise RuntimeError(message) from exc
        broker = StubBroker()
        dramatiq.set_broker(broker)
        return broker


def configure_broker() -> Broker:
    """Return the global broker with ``CurrentMessage`` installed.

    The live actor reads the queue receipt time from the message being
    processed, which Dramatiq only exposes through ``CurrentMessage``. The
    middleware has to be present before a worker starts consuming, so this
    runs when the actor module is imported. Repeated calls are no-ops.

    Raises
    ------
    RuntimeError
        If no broker is available and a stub broker is not allowed.

    """
    with _BROKER_LOCK:
        broker = _resolve_broker()
        if not any(isinstance(mw, CurrentMessage) for mw in broker.middleware):
            broker.add_middleware(CurrentMessage())
        return broker
