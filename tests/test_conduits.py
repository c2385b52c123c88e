import queue
import threading

import pytest

from pairdist.conduits import QueueBackend, ResultConduit, WorkQueue, make_queue


def test_close_then_drain_yields_queued_items():
    work = WorkQueue(consumers=1)
    for item in ("a", "b", "c"):
        work.put(item)
    work.close()
    assert list(work) == ["a", "b", "c"]


def test_put_after_close_is_rejected():
    conduit = ResultConduit()
    conduit.close()
    with pytest.raises(RuntimeError, match="closed"):
        conduit.put("x")


def test_close_is_idempotent():
    conduit = ResultConduit()
    conduit.put("x")
    conduit.close()
    conduit.close()
    assert list(conduit) == ["x"]


def test_each_consumer_sees_end_of_stream_once():
    work = WorkQueue(consumers=3)
    for i in range(30):
        work.put(i)
    work.close()

    seen = []
    lock = threading.Lock()

    def consume():
        for item in work:
            with lock:
                seen.append(item)

    threads = [threading.Thread(target=consume) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)
        assert not t.is_alive()
    assert sorted(seen) == list(range(30))


def test_bounded_put_times_out_when_full():
    work = WorkQueue(consumers=4, maxsize=2)
    work.put(1)
    work.put(2)
    with pytest.raises(queue.Full):
        work.put(3, timeout=0.01)


def test_consuming_frees_a_slot():
    work = WorkQueue(consumers=1, maxsize=1)
    work.put(1)
    items = iter(work)
    assert next(items) == 1
    work.put(2, timeout=0.01)
    work.close()
    assert list(items) == [2]


def test_close_does_not_block_on_a_full_queue():
    work = WorkQueue(consumers=3, maxsize=1)
    work.put("a")
    work.close()
    assert list(work) == ["a"]
    assert list(work) == []


def test_process_backend_bound():
    conduit = ResultConduit(maxsize=1, backend=QueueBackend.PROCESS)
    conduit.put("x")
    with pytest.raises(queue.Full):
        conduit.put("y", timeout=0.01)
    conduit.close()
    assert list(conduit) == ["x"]


def test_make_queue_backends():
    assert isinstance(make_queue(QueueBackend.THREAD), queue.Queue)
    assert make_queue(QueueBackend.PROCESS, maxsize=4) is not None
    with pytest.raises(ValueError):
        make_queue("redis")
