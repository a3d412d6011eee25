# =============================================================================
# Bridge Invoker
# =============================================================================
# Runs exactly one automation script per call through osascript. No parsing,
# no retry. A process-wide lock keeps at most one bridge call in flight.

import subprocess
import threading
import time

from loguru import logger

from .errors import Error, ErrorType, Result

# Single-flight: the browser offers no isolation between our reads and writes
_BRIDGE_LOCK = threading.Lock()


def _bridge_error(message: str, **context) -> Result[str]:
    return Result.err(Error(
        error_type=ErrorType.BRIDGE_ERROR,
        message=message,
        context=context
    ))


class BridgeInvoker:
    """Execute AppleScript text against the OS automation bridge.

    Args:
        command: Bridge executable, normally ``osascript``.
        timeout: Seconds before the subprocess is abandoned; ``None`` or 0
            waits indefinitely.
    """

    def __init__(self, command: str = "osascript", timeout: float | None = None):
        self.command = command
        self.timeout = timeout or None

    def run(self, script: str) -> Result[str]:
        """
        Run one script and return its stdout.

        Args:
            script: Complete AppleScript source

        Returns:
            Result[str]: Ok with raw stdout, or Err(BRIDGE_ERROR) when the
            bridge exits non-zero, times out or cannot be started
        """
        start_time = time.perf_counter()

        with _BRIDGE_LOCK:
            try:
                result = subprocess.run(
                    [self.command, "-e", script],
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=False
                )
            except subprocess.TimeoutExpired:
                logger.error(
                    "Bridge call timed out",
                    operation="bridge_run",
                    status="timeout",
                    timeout=self.timeout
                )
                return _bridge_error(
                    f"{self.command} timed out after {self.timeout} seconds",
                    timeout=self.timeout
                )
            except OSError as e:
                # Missing binary, permission denied, etc.
                logger.error(
                    "Bridge could not be started",
                    operation="bridge_run",
                    status="os_error",
                    command=self.command,
                    error=str(e)
                )
                return _bridge_error(
                    f"Could not run {self.command}: {e}",
                    command=self.command
                )

        duration_ms = int((time.perf_counter() - start_time) * 1000)

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            logger.warning(
                "Bridge script failed",
                operation="bridge_run",
                status="failed",
                returncode=result.returncode,
                stderr=stderr[:500],
                metrics={"duration_ms": duration_ms}
            )
            return _bridge_error(
                stderr or f"{self.command} exited with status {result.returncode}",
                returncode=result.returncode
            )

        logger.debug(
            "Bridge script completed",
            operation="bridge_run",
            status="success",
            metrics={"duration_ms": duration_ms, "output_bytes": len(result.stdout)}
        )
        return Result.ok(result.stdout)
