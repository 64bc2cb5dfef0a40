"""
NetSight job managers.
Background discovery scans with persisted state.
"""

import logging
import threading
import uuid
from typing import Callable, Optional

from errors import ScanInProgressError

logger = logging.getLogger(__name__)


class ScanJobManager:
    """Background scan execution manager with persisted state."""

    def __init__(
        self,
        datastore,
        state,
        run_profile_scan_fn: Callable[..., dict],
        *,
        default_target: str = "",
        on_finished: Optional[Callable[[str, str], None]] = None,
    ):
        self.datastore = datastore
        self.state = state
        self.default_target = default_target
        self._run_profile_scan = run_profile_scan_fn
        self._on_finished = on_finished
        self._lock = threading.Lock()

    def start(self, profile: str, target: Optional[str]) -> str:
        with self._lock:
            if self.datastore.has_running_scan():
                raise ScanInProgressError()
            job_id = str(uuid.uuid4())
            self.datastore.create_scan_job(job_id, profile, target or self.default_target)
        thread = threading.Thread(
            target=self._run,
            args=(job_id, profile, target),
            daemon=True,
        )
        thread.start()
        return job_id

    def _run(self, job_id: str, profile: str, target: Optional[str]):
        status = "failed"
        try:
            self.datastore.update_scan_job(job_id, status="running", progress=1, message="Initializing scan")

            def progress_cb(p: int, msg: str):
                self.datastore.update_scan_job(job_id, status="running", progress=p, message=msg)

            result = self._run_profile_scan(
                self.state,
                self.datastore,
                profile,
                target,
                progress_cb,
            )
            self.datastore.update_scan_job(
                job_id,
                status="completed",
                progress=100,
                message="Completed with errors" if result.get("partial") else "Completed",
                result=result,
            )
            status = "completed"
        except Exception as exc:
            logger.exception("scan job %s failed", job_id)
            self.datastore.update_scan_job(
                job_id,
                status="failed",
                progress=100,
                message="Failed",
                error=str(exc),
            )
        if self._on_finished:
            self._on_finished(job_id, status)
