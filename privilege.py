"""
NetSight privilege manager.
Renders platform elevation scripts for discovery commands and simulates the consent prompt.

Scripts are only rendered; nothing is written to disk or executed.
"""

import logging
import random
import re
import time
from typing import Callable, Dict, List, Optional

from constants import ALLOWED_COMMANDS
from errors import CommandNotAllowedError, NetSightError
from models import ElevationRequest, ElevationResult, ScriptTemplate
from toolkit.utils import utc_now_iso

logger = logging.getLogger(__name__)

GRANT_RATE = 0.8
DANGEROUS_TOKENS = [";", "&&", "||", "|", ">", "<", "`", "$", "(", ")", "{", "}"]
_DANGEROUS_RE = re.compile("|".join(re.escape(t) for t in sorted(DANGEROUS_TOKENS, key=len, reverse=True)))

WINDOWS_TEMPLATE = """# Network Discovery Elevation Script
# Generated: @GENERATED@
# Reason: @REASON@

param(
    [switch]$Elevated
)

function Test-Admin {
    $currentUser = [Security.Principal.WindowsIdentity]::GetCurrent()
    $principal = New-Object Security.Principal.WindowsPrincipal($currentUser)
    return $principal.IsInRole([Security.Principal.WindowsBuiltInRole]::Administrator)
}

if (-not $Elevated) {
    Write-Host "Requesting administrator privileges for network discovery..." -ForegroundColor Yellow
    if (Test-Admin) {
        $Elevated = $true
    } else {
        $arguments = "-NoProfile -ExecutionPolicy Bypass -File `"$PSCommandPath`" -Elevated"
        Start-Process PowerShell -Verb RunAs -ArgumentList $arguments -Wait
        exit
    }
}

if ($Elevated) {
    try {@COMMANDS@
        Write-Host "Network discovery completed." -ForegroundColor Green
    } catch {
        Write-Error "Error during network discovery: $_"
        exit 1
    }
    Remove-Item -Path $PSCommandPath -Force -ErrorAction SilentlyContinue
}
"""

WINDOWS_COMMAND = """
        Write-Host "Executing: @CMD@" -ForegroundColor Cyan
        $result = & @CMD@ 2>&1
        if ($LASTEXITCODE -ne 0) {
            Write-Host "Command failed with exit code: $LASTEXITCODE" -ForegroundColor Red
        }
        $result | Out-String | Write-Output"""

LINUX_TEMPLATE = """#!/bin/bash
# Network Discovery Elevation Script
# Generated: @GENERATED@
# Reason: @REASON@

set -euo pipefail

echo "Requesting elevated privileges for network discovery..."
if [[ $EUID -eq 0 ]]; then
    ELEVATED=true
elif sudo -v; then
    ELEVATED=true
else
    echo "Failed to obtain sudo access."
    exit 1
fi

if [[ "$ELEVATED" == "true" ]]; then@COMMANDS@
    echo "Network discovery completed."
    rm -f "$0"
fi
"""

LINUX_COMMAND = """
    echo "Executing: @CMD@"
    if ! sudo @CMD@; then
        echo "Command failed: @CMD@"
        exit 1
    fi"""

DARWIN_TEMPLATE = """#!/bin/bash
# Network Discovery Elevation Script for macOS
# Generated: @GENERATED@
# Reason: @REASON@

set -euo pipefail

ADMIN_PASS=$(osascript -e 'display dialog "Network Discovery requires administrator privileges.\\n\\nReason: @REASON@" default answer "" with hidden answer' -e 'text returned of result' 2>/dev/null || echo "")

if [[ -z "$ADMIN_PASS" ]]; then
    echo "Administrator access denied or cancelled."
    exit 1
fi

if echo "$ADMIN_PASS" | sudo -S true 2>/dev/null; then@COMMANDS@
    echo "Network discovery completed."
    rm -f "$0"
else
    echo "Invalid password or insufficient privileges."
    exit 1
fi
"""

DARWIN_COMMAND = """
    echo "Executing: @CMD@"
    if ! echo "$ADMIN_PASS" | sudo -S @CMD@; then
        echo "Command failed: @CMD@"
        exit 1
    fi"""

TEMPLATES = {
    "windows": (WINDOWS_TEMPLATE, WINDOWS_COMMAND, ".ps1"),
    "linux": (LINUX_TEMPLATE, LINUX_COMMAND, ".sh"),
    "darwin": (DARWIN_TEMPLATE, DARWIN_COMMAND, ".sh"),
}


def sanitize_command(command: str) -> str:
    """Strip shell metacharacters and require a whitelisted discovery command."""
    cleaned = " ".join(_DANGEROUS_RE.sub("", command or "").split())
    name = cleaned.split(" ", 1)[0].lower() if cleaned else ""
    if name.endswith(".exe"):
        name = name[: -len(".exe")]
    if name not in ALLOWED_COMMANDS:
        raise CommandNotAllowedError(name or command)
    return cleaned


def render_script(request: ElevationRequest) -> ScriptTemplate:
    if request.platform not in TEMPLATES:
        raise NetSightError(f"Unsupported platform: {request.platform}")
    template, command_block, extension = TEMPLATES[request.platform]
    commands = [sanitize_command(c) for c in request.commands]
    reason = _DANGEROUS_RE.sub("", request.reason).replace('"', "'")
    blocks = "".join(command_block.replace("@CMD@", c) for c in commands)
    content = (
        template.replace("@GENERATED@", utc_now_iso())
        .replace("@REASON@", reason)
        .replace("@COMMANDS@", blocks)
    )
    return ScriptTemplate(content=content, extension=extension, executable=True)


class PrivilegeManager:
    """Tracks the current elevation grant for this process."""

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        privilege_probe: Optional[Callable[[], str]] = None,
        grant_rate: float = GRANT_RATE,
        prompt_delay: float = 0.0,
    ):
        self._rng = rng or random.Random()
        self._probe = privilege_probe or (lambda: "user")
        self.grant_rate = grant_rate
        self.prompt_delay = max(0.0, float(prompt_delay))
        self.current_elevation: Optional[ElevationResult] = None
        self.last_script: Optional[ScriptTemplate] = None

    def request_elevation(self, request: ElevationRequest) -> ElevationResult:
        logger.info("privilege elevation requested on %s: %s", request.platform, request.reason)
        if not request.requires_elevation:
            return ElevationResult(granted=True, method="none")
        if self._probe() == "elevated":
            logger.info("already running with elevated privileges")
            return ElevationResult(granted=True, method="none")

        try:
            script = render_script(request)
        except NetSightError as exc:
            logger.warning("elevation request rejected: %s", exc)
            return ElevationResult(granted=False, method="failed", error=str(exc))

        self.last_script = script
        result = self._prompt(request, script)
        self.current_elevation = result
        return result

    def _prompt(self, request: ElevationRequest, script: ScriptTemplate) -> ElevationResult:
        logger.debug("elevation script preview: %s...", script.content[:200])
        if self.prompt_delay:
            time.sleep(self.prompt_delay)
        if self._rng.random() < self.grant_rate:
            logger.info("elevation granted")
            return ElevationResult(
                granted=True,
                method="uac" if request.platform == "windows" else "sudo",
                script_path=f"/tmp/network_discovery{script.extension}",
            )
        logger.warning("elevation denied")
        return ElevationResult(granted=False, method="failed", error="User denied elevation request")

    def execute_elevated_commands(self, commands: List[str], reason: str, platform: str) -> Dict[str, object]:
        request = ElevationRequest(reason=reason, commands=list(commands), platform=platform)
        elevation = self.request_elevation(request)
        if not elevation.granted:
            return {"success": False, "output": "", "error": elevation.error or "Elevation denied"}
        output = "\n\n".join(f"Executed: {cmd}\nResult: Success" for cmd in commands)
        logger.info("elevated commands completed (%d)", len(commands))
        return {"success": True, "output": output}

    def cleanup(self) -> None:
        if self.current_elevation and self.current_elevation.script_path:
            logger.info("cleaning up elevation artifacts")
            self.current_elevation = None
            self.last_script = None

    def is_elevated(self) -> bool:
        return bool(self.current_elevation and self.current_elevation.granted)

    def get_elevation_status(self) -> Optional[ElevationResult]:
        return self.current_elevation
