"""
NetSight error types.
Raised by the topology, discovery, privilege, and pipeline layers and mapped to HTTP errors by the server.
"""

from typing import List, Optional


class NetSightError(Exception):
    """Base class for expected, client-visible failures."""

    status_code = 400


class NotFoundError(NetSightError):
    status_code = 404


class TopologyValidationError(NetSightError):
    """A topology broke id uniqueness, endpoint, or stats-sum rules."""

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        summary = "; ".join(self.violations[:5])
        if len(self.violations) > 5:
            summary += f" (+{len(self.violations) - 5} more)"
        super().__init__(f"Invalid topology: {summary}")


class ScanInProgressError(NetSightError):
    status_code = 409

    def __init__(self, message: str = "Scan already in progress"):
        super().__init__(message)


class TransientProbeError(NetSightError):
    """Probe failure worth retrying (timeouts, dropped replies)."""


class PrivilegeError(NetSightError):
    status_code = 403


class CommandNotAllowedError(PrivilegeError):
    def __init__(self, command: str, reason: Optional[str] = None):
        self.command = command
        super().__init__(reason or f"Command not allowed: {command}")


class PipelineConfigError(NetSightError):
    pass
