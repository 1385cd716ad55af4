from unittest import mock

import pytest

from zinxtools.snowflake import ClockMovedBackwardsError, IDWorker

MS = 1_000_000


def test_snowflake_uuid_basic():
    worker = IDWorker(1)
    new_id = worker.next_id()
    assert new_id > 0
    assert (new_id >> 12) & 0x3FF == 1


@pytest.mark.parametrize("worker_id", [-1, 1024, 5000])
def test_invalid_worker_id(worker_id):
    with pytest.raises(ValueError):
        IDWorker(worker_id)


@pytest.mark.parametrize("worker_id", [0, 1023])
def test_boundary_worker_ids(worker_id):
    assert (IDWorker(worker_id).next_id() >> 12) & 0x3FF == worker_id


def test_ids_unique_and_increasing():
    worker = IDWorker(7)
    ids = [worker.next_id() for _ in range(5000)]
    assert len(set(ids)) == 5000
    assert ids == sorted(ids)


def test_id_layout_with_fixed_clock():
    with mock.patch("time.time_ns", side_effect=[1000 * MS, 1000 * MS, 1001 * MS]):
        worker = IDWorker(3)
        first = worker.next_id()
        second = worker.next_id()
        third = worker.next_id()
    assert first == (1000 << 22) | (3 << 12) | 0
    assert second == (1000 << 22) | (3 << 12) | 1
    assert third == (1001 << 22) | (3 << 12) | 0


def test_sequence_overflow_waits_for_next_millisecond():
    times = [1000 * MS] * 4097 + [1000 * MS, 1001 * MS]
    with mock.patch("time.time_ns", side_effect=times):
        worker = IDWorker(2)
        ids = [worker.next_id() for _ in range(4097)]
    assert ids[4095] == (1000 << 22) | (2 << 12) | 4095
    assert ids[4096] == (1001 << 22) | (2 << 12) | 0


def test_clock_moved_backwards():
    with mock.patch("time.time_ns", side_effect=[2000 * MS, 1999 * MS]):
        worker = IDWorker(1)
        worker.next_id()
        with pytest.raises(ClockMovedBackwardsError):
            worker.next_id()