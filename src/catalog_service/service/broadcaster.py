"""Fan-out of catalog snapshots to connected real-time observers."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Set


logger = logging.getLogger(__name__)

UPDATE_EVENT = "updateProductList"
NEW_PRODUCT_EVENT = "newProduct"
DELETE_PRODUCT_EVENT = "deleteProduct"
ERROR_EVENT = "error"

DEFAULT_SEND_TIMEOUT = 5.0


def envelope(event: str, data: Any) -> Dict[str, Any]:
    return {"event": event, "data": data}


class ChangeBroadcaster:
    """Keeps the observer set and pushes full product snapshots to it.

    Observers are anything with an awaitable ``send_json(payload)`` method,
    in practice Starlette ``WebSocket`` connections. Sends go out
    concurrently and each is bounded by ``send_timeout``; an observer that
    errors or times out is dropped.
    """

    def __init__(
        self,
        snapshot: Callable[[], List[Dict[str, object]]],
        send_timeout: float = DEFAULT_SEND_TIMEOUT,
    ) -> None:
        self._snapshot = snapshot
        self.send_timeout = send_timeout
        self._observers: Set[Any] = set()
        self._lock = asyncio.Lock()

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    async def connect(self, observer: Any) -> None:
        self._observers.add(observer)
        logger.info("Observer connected (%s total)", len(self._observers))
        await observer.send_json(envelope(UPDATE_EVENT, self._snapshot()))

    def disconnect(self, observer: Any) -> None:
        self._observers.discard(observer)
        logger.info("Observer disconnected (%s remaining)", len(self._observers))

    async def broadcast(self) -> int:
        """Send the current snapshot to every observer; return how many got it."""

        async with self._lock:
            message = envelope(UPDATE_EVENT, self._snapshot())
            observers = list(self._observers)
            outcomes = await asyncio.gather(
                *(self._send(observer, message) for observer in observers)
            )
        delivered = sum(outcomes)
        logger.debug("Broadcast %s products to %s observers", len(message["data"]), delivered)
        return delivered

    async def _send(self, observer: Any, message: Dict[str, Any]) -> bool:
        try:
            await asyncio.wait_for(observer.send_json(message), timeout=self.send_timeout)
        except asyncio.TimeoutError:
            logger.warning("Dropping observer that did not accept an update within %ss", self.send_timeout)
        except Exception as exc:
            logger.warning("Dropping observer after failed send: %s", exc)
        else:
            return True
        self._observers.discard(observer)
        return False
