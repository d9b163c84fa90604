import asyncio

import pytest

from lan_survey.scanners.base_scanner import DatagramListener, run_bounded


def test_wide_fan_out_keeps_live_tasks_bounded():
    peak = 0

    async def worker(item):
        nonlocal peak
        peak = max(peak, len(asyncio.all_tasks()))
        await asyncio.sleep(0)
        return item

    async def scenario():
        baseline = len(asyncio.all_tasks())
        results = await run_bounded(range(2000), 4, worker)
        return baseline, results

    baseline, results = asyncio.run(scenario())

    assert results == list(range(2000))
    assert peak <= baseline + 4


def test_items_are_pulled_only_when_a_slot_frees():
    pulled = 0
    finished = 0
    outstanding = []

    def addresses():
        nonlocal pulled
        for i in range(50):
            pulled += 1
            outstanding.append(pulled - finished)
            yield i

    async def worker(item):
        nonlocal finished
        await asyncio.sleep(0.001)
        finished += 1

    asyncio.run(run_bounded(addresses(), 3, worker))

    assert pulled == 50
    assert max(outstanding) == 3


def test_results_follow_item_order():
    async def worker(item):
        await asyncio.sleep(0.001 * (5 - item))
        return item * 10

    assert asyncio.run(run_bounded([1, 2, 3, 4], 4, worker)) == [10, 20, 30, 40]


def test_empty_input_returns_empty_list():
    async def worker(item):
        return item

    assert asyncio.run(run_bounded([], 8, worker)) == []


def test_first_failure_cancels_the_rest():
    started = []

    async def worker(item):
        started.append(item)
        if item == 2:
            raise RuntimeError("boom")
        await asyncio.sleep(1)

    with pytest.raises(RuntimeError, match="boom"):
        asyncio.run(run_bounded(range(100), 4, worker))

    assert len(started) < 100


def test_datagram_listener_hands_over_packets_and_keeps_errors():
    received = []
    listener = DatagramListener(lambda data, addr: received.append((data, addr)))

    listener.datagram_received(b"hello", ("127.0.0.1", 1900))
    listener.error_received(OSError("unreachable"))

    assert received == [(b"hello", ("127.0.0.1", 1900))]
    assert isinstance(listener.error, OSError)
