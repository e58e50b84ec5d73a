"""Bounded discovery of Aranet4 devices."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Callable, Optional

from ..errors import DeviceError
from ..models import DEFAULT_TIMEOUT_SECONDS, DeviceRecord, ErrorPolicy, Peripheral
from .adapter import BleAdapter
from .session import DeviceSession

logger = logging.getLogger(__name__)

# Aranet4 advertised service
ARANET4_SERVICE_UUID = "0000fce0-0000-1000-8000-00805f9b34fb"


class ScanCoordinator:
    """Scans until a deadline or a device count is reached, reading each device found.

    With one worker (the default) every device is read to completion before
    the next advertisement is looked at, so a slow device eats into the time
    left for finding others. More workers read devices concurrently while
    the scan keeps going.
    """

    def __init__(
        self,
        adapter: BleAdapter,
        on_error: ErrorPolicy = ErrorPolicy.ABORT,
        workers: int = 1,
        session_factory: Callable[[Peripheral], Any] = DeviceSession,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")

        self._adapter = adapter
        self._on_error = on_error
        self._workers = workers
        self._session_factory = session_factory

    async def discover(
        self,
        max_devices: Optional[int] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> list[DeviceRecord]:
        """Run one discovery pass.

        Returns records in the order devices were accepted. Running out of
        time or reaching max_devices ends the pass normally.

        Raises:
            ScanError: the adapter could not be opened or the scan started
            DeviceError: a device failed and the error policy is ABORT
        """
        if not math.isfinite(timeout) or timeout < 0:
            raise ValueError(f"timeout must be a finite, non-negative number, got {timeout}")
        if max_devices is not None and max_devices < 0:
            raise ValueError(f"max_devices must not be negative, got {max_devices}")
        if max_devices == 0:
            return []

        await self._adapter.open([ARANET4_SERVICE_UUID])
        try:
            await self._adapter.start_scan()
            deadline = asyncio.get_running_loop().time() + timeout
            logger.info("Scanning for Aranet4 devices for %.1fs", timeout)

            if self._workers > 1:
                records = await self._collect_concurrent(deadline, max_devices)
            else:
                records = await self._collect_sequential(deadline, max_devices)
        finally:
            await self._adapter.close()

        logger.info("Discovery finished with %d device(s)", len(records))
        return records

    async def _collect_sequential(
        self,
        deadline: float,
        max_devices: Optional[int],
    ) -> list[DeviceRecord]:
        records: list[DeviceRecord] = []
        seen: set[str] = set()

        while True:
            peripheral = await self._next_event(deadline)
            if peripheral is None:
                break

            if not self._accepts(peripheral, seen):
                continue
            seen.add(peripheral.address)

            try:
                record = await self._session_factory(peripheral).fetch()
            except Exception as e:
                self._handle_error(e)
                continue

            records.append(record)
            if _budget_reached(len(records), max_devices):
                break

        return records

    async def _collect_concurrent(
        self,
        deadline: float,
        max_devices: Optional[int],
    ) -> list[DeviceRecord]:
        loop = asyncio.get_running_loop()
        pool = asyncio.Semaphore(self._workers)
        results: asyncio.Queue[tuple[int, Optional[DeviceRecord], Optional[Exception]]] = asyncio.Queue()

        async def run_session(index: int, peripheral: Peripheral) -> None:
            async with pool:
                try:
                    record = await self._session_factory(peripheral).fetch()
                except Exception as e:
                    await results.put((index, None, e))
                    return
            await results.put((index, record, None))

        collected: dict[int, DeviceRecord] = {}
        seen: set[str] = set()
        tasks: list[asyncio.Task] = []
        in_flight = 0
        event_getter: Optional[asyncio.Future] = None
        result_getter: Optional[asyncio.Future] = None

        try:
            while not _budget_reached(len(collected), max_devices):
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break

                if event_getter is None and not _budget_reached(len(collected) + in_flight, max_devices):
                    event_getter = asyncio.ensure_future(self._adapter.next_event())
                if result_getter is None:
                    result_getter = asyncio.ensure_future(results.get())

                waiting = {result_getter}
                if event_getter is not None:
                    waiting.add(event_getter)

                done, _ = await asyncio.wait(
                    waiting,
                    timeout=remaining,
                    return_when=asyncio.FIRST_COMPLETED,
                )

                if result_getter in done:
                    index, record, error = result_getter.result()
                    result_getter = None
                    in_flight -= 1
                    if error is not None:
                        self._handle_error(error)
                    else:
                        collected[index] = record

                if event_getter is not None and event_getter in done:
                    peripheral = event_getter.result()
                    event_getter = None
                    if self._accepts(peripheral, seen):
                        seen.add(peripheral.address)
                        tasks.append(
                            asyncio.create_task(
                                run_session(len(tasks), peripheral),
                                name=f"session_{peripheral.address}",
                            )
                        )
                        in_flight += 1
        finally:
            pending = [t for t in (event_getter, result_getter, *tasks) if t is not None and not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
                logger.debug("Cancelled %d pending task(s)", len(pending))

        return [collected[i] for i in sorted(collected)]

    async def _next_event(self, deadline: float) -> Optional[Peripheral]:
        """Wait for an advertisement, or None once the deadline passes."""
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            return None

        try:
            return await asyncio.wait_for(self._adapter.next_event(), timeout=remaining)
        except asyncio.TimeoutError:
            return None

    def _accepts(self, peripheral: Peripheral, seen: set[str]) -> bool:
        """Re-check the scan filter and skip devices already handled."""
        if not peripheral.advertises(ARANET4_SERVICE_UUID):
            logger.debug("Ignoring %s: service not advertised", peripheral.address)
            return False
        if peripheral.address in seen:
            return False
        return True

    def _handle_error(self, error: Exception) -> None:
        """Raise the error unless it is a device error the policy lets us skip."""
        if not isinstance(error, DeviceError) or self._on_error == ErrorPolicy.ABORT:
            raise error

        logger.warning("Skipping device %s", error)


def _budget_reached(count: int, max_devices: Optional[int]) -> bool:
    return max_devices is not None and count >= max_devices
