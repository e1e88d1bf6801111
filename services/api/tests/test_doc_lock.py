"""
Tests for per-document leases.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import threading
import time

import pytest

from core.doc_lock import DocumentLeases, get_document_leases
from core.errors import WriteConflict


class TestDocumentLeases:
    def test_acquire_and_release(self):
        leases = DocumentLeases()
        token = leases.acquire("1042")
        assert leases.is_held("1042")
        leases.release("1042", token)
        assert not leases.is_held("1042")

    def test_second_acquire_conflicts(self):
        leases = DocumentLeases()
        leases.acquire("1042")
        with pytest.raises(WriteConflict) as exc:
            leases.acquire("1042")
        assert exc.value.status_code == 409
        # other names are independent
        leases.acquire("1043")

    def test_release_needs_matching_token(self):
        leases = DocumentLeases()
        leases.acquire("1042")
        leases.release("1042", "not-the-token")
        assert leases.is_held("1042")

    def test_hold_releases_on_error(self):
        leases = DocumentLeases()
        with pytest.raises(RuntimeError):
            with leases.hold("1042"):
                raise RuntimeError("write failed")
        assert not leases.is_held("1042")

    def test_lease_expires(self):
        """A lease left behind by a dead request stops blocking after the TTL."""
        leases = DocumentLeases(ttl_s=0.05)
        leases.acquire("1042")
        time.sleep(0.1)
        assert not leases.is_held("1042")
        leases.acquire("1042")

    def test_only_one_concurrent_holder(self):
        leases = DocumentLeases()
        barrier = threading.Barrier(8)
        outcomes = []

        def worker():
            barrier.wait()
            try:
                leases.acquire("1042")
                outcomes.append("ok")
            except WriteConflict:
                outcomes.append("conflict")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == 7

    def test_process_wide_singleton(self):
        assert get_document_leases() is get_document_leases()
