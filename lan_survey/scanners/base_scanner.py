"""
Base probe interface for the LAN survey.

This module defines the base class shared by every probe, providing
deadline handling, failure-to-default conversion and logging helpers,
and the bounded fan-out used by each survey phase.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from ..utils.logger import Logger, get_logger

T = TypeVar("T")
R = TypeVar("R")


async def run_bounded(
    items: Iterable[T], limit: int, worker: Callable[[T], Awaitable[R]]
) -> List[R]:
    """
    Run worker over items with at most `limit` calls in flight.

    A fixed pool of `limit` tasks pulls items from a shared iterator, so
    an item is only taken once a slot is free and items may be a lazy
    iterable of any length. Results come back in item order. The first
    exception raised by a worker cancels the remaining calls and
    propagates.

    Args:
        items: Work items
        limit: Maximum number of concurrent worker calls
        worker: Coroutine function applied to each item

    Returns:
        List of worker results, one per item
    """
    pending = iter(enumerate(items))
    results: Dict[int, R] = {}

    async def drain() -> None:
        for index, item in pending:
            results[index] = await worker(item)

    tasks = [asyncio.ensure_future(drain()) for _ in range(max(1, limit))]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    return [results[index] for index in range(len(results))]


class DatagramListener(asyncio.DatagramProtocol):
    """
    UDP endpoint protocol handing every datagram to a callback.

    Socket errors are remembered rather than raised so that a listener
    can return what it gathered so far.
    """

    def __init__(self, on_datagram: Callable[[bytes, Tuple[str, int]], None]):
        self.on_datagram = on_datagram
        self.error: Optional[Exception] = None

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        self.on_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        self.error = exc


class BaseProbe:
    """
    Base class for all probes.

    A probe turns every failure (timeout, refused connection, protocol
    error) into its empty result so that one host never disturbs another.
    """

    probe_name = "probe"

    def __init__(self, logger: Optional[Logger] = None):
        """
        Initialize the base probe.

        Args:
            logger: Logger instance for outputting probe progress and errors
        """
        self.logger = logger or get_logger(f"lan_survey.{self.probe_name}")

    async def _guarded(self, target: str, operation: Awaitable[Any], timeout: float, default: Any) -> Any:
        """
        Await an operation under a deadline.

        Args:
            target: Host the operation talks to, for log lines
            operation: Awaitable performing the probe
            timeout: Deadline in seconds
            default: Value returned on timeout or failure

        Returns:
            The operation result, or default
        """
        try:
            return await asyncio.wait_for(operation, timeout)
        except asyncio.TimeoutError:
            self._log_debug(f"{self.probe_name} probe of {target} timed out after {timeout}s")
        except Exception as e:
            self._log_debug(f"{self.probe_name} probe of {target} failed: {type(e).__name__}: {e}")
        return default

    def _log_info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def _log_warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def _log_error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def _log_debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)
