import threading

import pytest

from errors import ScanInProgressError
from services.jobs import ScanJobManager
from state import TopologyState


def _manager(store, fn):
    finished = []
    done = threading.Event()

    def on_finished(job_id, status):
        finished.append((job_id, status))
        done.set()

    manager = ScanJobManager(store, TopologyState(), fn, default_target="10.0.0.0/24", on_finished=on_finished)
    return manager, finished, done


def test_job_completes_and_records_progress(isolated_store):
    seen = []

    def fake_scan(state, datastore, profile, target, progress_cb):
        progress_cb(50, "Querying SNMP")
        seen.append([(j["progress"], j["message"]) for j in datastore.list_scan_jobs()])
        return {"profile": profile, "devices_found": 4, "partial": False}

    manager, finished, done = _manager(isolated_store, fake_scan)
    job_id = manager.start("quick", None)
    assert done.wait(5)

    assert seen == [[(50, "Querying SNMP")]]
    job = isolated_store.get_scan_job(job_id)
    assert job["status"] == "completed"
    assert job["target"] == "10.0.0.0/24"
    assert job["message"] == "Completed"
    assert job["result"]["devices_found"] == 4
    assert finished == [(job_id, "completed")]


def test_partial_result_is_flagged(isolated_store):
    manager, _, done = _manager(isolated_store, lambda *a: {"partial": True})
    job_id = manager.start("standard", "192.168.1.0/24")
    assert done.wait(5)

    job = isolated_store.get_scan_job(job_id)
    assert job["message"] == "Completed with errors"
    assert job["target"] == "192.168.1.0/24"


def test_job_failure_is_persisted(isolated_store):
    def broken(*args):
        raise RuntimeError("probe backend unavailable")

    manager, finished, done = _manager(isolated_store, broken)
    job_id = manager.start("deep", None)
    assert done.wait(5)

    job = isolated_store.get_scan_job(job_id)
    assert job["status"] == "failed"
    assert job["error"] == "probe backend unavailable"
    assert finished == [(job_id, "failed")]


def test_second_job_rejected_while_one_is_running(isolated_store):
    release = threading.Event()

    def slow(*args):
        release.wait(5)
        return {}

    manager, _, done = _manager(isolated_store, slow)
    manager.start("quick", None)
    with pytest.raises(ScanInProgressError):
        manager.start("quick", None)

    release.set()
    assert done.wait(5)
    assert isolated_store.has_running_scan() is False
