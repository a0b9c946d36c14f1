"""
Pending-Exchange Registry

Correlates outbound requests with the Editor's replies.
"""

from __future__ import annotations

import asyncio
import builtins
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .exceptions import TimeoutError

logger = logging.getLogger(__name__)


class ExchangeKind(str, Enum):
    COMMAND = "command"
    STATE = "state"


@dataclass
class PendingExchange:
    """A request awaiting exactly one reply"""

    request_id: str
    kind: ExchangeKind
    future: asyncio.Future[Any]
    started_at: float = field(default_factory=time.monotonic)

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started_at) * 1000


class PendingExchangeRegistry:
    """
    Registry of in-flight correlated requests.

    Rules:
    - A reply carrying an id resolves the exchange with that id
    - A reply without an id resolves the oldest exchange of its kind
    - Settling is one-shot; late or duplicate replies are no-ops
    - ``single_flight(kind)`` serialises requests of one kind so the
      id-less fallback can never pick the wrong waiter
    """

    def __init__(self) -> None:
        self._pending: dict[str, PendingExchange] = {}
        self._locks: dict[ExchangeKind, asyncio.Lock] = {}

    def single_flight(self, kind: ExchangeKind) -> asyncio.Lock:
        """Lock held for the whole send/await cycle of one request of kind"""
        lock = self._locks.get(kind)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[kind] = lock
        return lock

    def register(self, kind: ExchangeKind, request_id: str) -> PendingExchange:
        if request_id in self._pending:
            raise ValueError(f"Request {request_id} is already pending")
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        exchange = PendingExchange(request_id=request_id, kind=kind, future=future)
        self._pending[request_id] = exchange
        logger.debug(f"Registered pending {kind.value} exchange: {request_id}")
        return exchange

    def _find(self, kind: ExchangeKind, request_id: str | None) -> PendingExchange | None:
        if request_id is not None:
            exchange = self._pending.get(request_id)
            if exchange is not None and exchange.kind != kind:
                logger.warning(
                    f"Reply kind mismatch for {request_id}: expected {exchange.kind.value}, got {kind.value}"
                )
                return None
            return exchange
        # dict preserves insertion order, so the first match is the oldest
        return next((e for e in self._pending.values() if e.kind == kind), None)

    def resolve(self, kind: ExchangeKind, value: Any, request_id: str | None = None) -> bool:
        """Complete the matching exchange with value.

        Returns:
            True if a waiter was resolved, False if the reply was dropped.
        """
        exchange = self._find(kind, request_id)
        if exchange is None:
            if request_id is not None:
                logger.warning(f"Ignoring late {kind.value} reply for {request_id} (not pending)")
            else:
                logger.debug(f"Ignoring unsolicited {kind.value} reply")
            return False

        self._pending.pop(exchange.request_id, None)
        if exchange.future.done():
            return False
        exchange.future.set_result(value)
        logger.debug(f"Resolved {kind.value} exchange {exchange.request_id} after {exchange.elapsed_ms:.0f}ms")
        return True

    def reject(self, request_id: str, exc: BaseException) -> bool:
        exchange = self._pending.pop(request_id, None)
        if exchange is None or exchange.future.done():
            return False
        exchange.future.set_exception(exc)
        logger.debug(f"Rejected exchange {request_id}: {exc}")
        return True

    def reject_all(self, exc: BaseException) -> int:
        """Reject every pending exchange, e.g. when the peer goes away"""
        rejected = 0
        for request_id in list(self._pending):
            if self.reject(request_id, exc):
                rejected += 1
        if rejected:
            logger.info(f"Rejected {rejected} pending exchange(s): {exc}")
        return rejected

    def discard(self, request_id: str) -> None:
        """Forget an exchange without settling it"""
        self._pending.pop(request_id, None)

    async def wait(self, exchange: PendingExchange, timeout_ms: int) -> Any:
        """Await the exchange's reply, bounded by timeout_ms.

        Raises:
            TimeoutError: If no reply arrived in time. The slot is cleared
                so a later reply is dropped.
        """
        try:
            return await asyncio.wait_for(exchange.future, timeout=timeout_ms / 1000)
        except builtins.TimeoutError as e:
            logger.warning(f"{exchange.kind.value} exchange {exchange.request_id} timed out after {timeout_ms}ms")
            raise TimeoutError(
                f"No reply for {exchange.kind.value} request {exchange.request_id} within {timeout_ms}ms"
            ) from e
        finally:
            self.discard(exchange.request_id)

    def is_pending(self, request_id: str) -> bool:
        return request_id in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)
