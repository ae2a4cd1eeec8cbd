import threading

import pytest

from ontoquery.revision import RevisionCounter


def test_starts_at_zero():
    assert RevisionCounter().current() == 0


def test_bump_returns_new_value():
    counter = RevisionCounter()
    assert counter.bump() == 1
    assert counter.bump() == 2
    assert counter.current() == 2


def test_negative_start_rejected():
    with pytest.raises(ValueError):
        RevisionCounter(-1)


def test_concurrent_bumps_are_not_lost():
    counter = RevisionCounter()
    seen = []
    lock = threading.Lock()

    def worker():
        for _ in range(500):
            value = counter.bump()
            with lock:
                seen.append(value)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counter.current() == 4000
    # every bump observed a distinct value
    assert sorted(seen) == list(range(1, 4001))
