import threading

from medsos_dispatch.locks import KeyedLocks


def test_key_keeps_its_lock_after_release() -> None:
    locks = KeyedLocks()
    with locks.hold("req-1"):
        first = locks._lock_for("req-1")

    assert locks._lock_for("req-1") is first
    assert not first.locked()


def test_other_keys_do_not_wait_on_a_held_key() -> None:
    locks = KeyedLocks()
    entered = threading.Event()

    def other() -> None:
        with locks.hold("req-2"):
            entered.set()

    with locks.hold("req-1"):
        worker = threading.Thread(target=other)
        worker.start()
        assert entered.wait(timeout=5)
    worker.join(timeout=5)
