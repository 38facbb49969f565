import threading

import pytest

from mosdns.safe_close import SafeClose


def test_not_closing_initially():
    sc = SafeClose()
    assert sc.is_closing() is False
    assert sc.close_signal.is_set() is False


def test_close_without_error():
    sc = SafeClose()
    sc.send_close_signal(None)
    assert sc.is_closing() is True
    assert sc.wait_closed() is None


def test_close_error_is_reraised():
    sc = SafeClose()
    err = RuntimeError("boom")
    sc.send_close_signal(err)
    with pytest.raises(RuntimeError) as ei:
        sc.wait_closed()
    assert ei.value is err


def test_only_first_signal_counts():
    sc = SafeClose()
    first = ValueError("first")
    sc.send_close_signal(first)
    sc.send_close_signal(KeyError("second"))
    with pytest.raises(ValueError) as ei:
        sc.wait_closed()
    assert ei.value is first


def test_wait_closed_waits_for_attached_workers():
    sc = SafeClose()
    events = []
    started = threading.Event()

    def worker(done, close_signal):
        started.set()
        close_signal.wait()
        events.append("closed")
        done()

    sc.attach(worker)
    assert started.wait(5)
    assert sc.is_closing() is False
    sc.send_close_signal(None)
    assert sc.wait_closed() is None
    assert events == ["closed"]
    assert sc.is_closing() is True


def test_attach_after_close_does_not_run():
    sc = SafeClose()
    sc.send_close_signal(None)
    ran = []
    sc.attach(lambda done, sig: (ran.append(True), done()))
    sc.wait_closed()
    assert ran == []


def test_worker_can_close_with_error():
    sc = SafeClose()

    def worker(done, close_signal):
        sc.send_close_signal(OSError("listen failed"))
        done()

    sc.attach(worker)
    with pytest.raises(OSError, match="listen failed"):
        sc.wait_closed()