# =============================================================================
# Tab Operations
# =============================================================================
# get_tabs, close_tab_by_id, activate_tab_by_id and the deprecated close_tab.
# Each call captures its own snapshot; nothing is cached between calls and
# nothing is retried. Every path ends in a Result, never an exception.

import threading
import time
from uuid import uuid4

from loguru import logger

from .bridge import BridgeInvoker
from .directory import Snapshot, TabDirectory
from .errors import Error, ErrorType, Result, require_positive_int
from .logging_config import trace_id_var
from .resolver import AddressResolver, ById, ByPosition
from .scripts import (
    activate_tab_by_id_script,
    close_tab_by_id_script,
    close_tab_by_position_script,
    enumerate_tabs_script,
)
from .snapshot_parser import parse_snapshot
from .tab_utils import format_directory

LEGACY_CLOSE_NOTE = (
    "close_tab addresses tabs by position, which shifts whenever tabs are "
    "opened, closed or moved. Prefer close_tab_by_id."
)

UNVERIFIED_ACTIVATION_NOTE = "(not verified: could not re-list tabs afterwards)"

# One operation at a time per process: a resolve, its mutation and any
# re-list must not interleave with another caller's scripts.
_OPERATION_LOCK = threading.Lock()


class TabOperations:
    """The public tab actions, composed from bridge, parser and resolver.

    Args:
        bridge: Anything with ``run(script) -> Result[str]``.
        application: Browser application name used in every script.
        verify_activation: Re-list after activation and check the target is
            its window's only active tab.
    """

    def __init__(
        self,
        bridge: BridgeInvoker,
        application: str = "Google Chrome",
        verify_activation: bool = True,
    ):
        self.bridge = bridge
        self.application = application
        self.verify_activation = verify_activation
        self.resolver = AddressResolver(self.fetch_snapshot)

    @classmethod
    def from_config(cls, config: dict) -> 'TabOperations':
        bridge = BridgeInvoker(
            command=config["bridge"]["command"],
            timeout=config["bridge"]["timeout"],
        )
        return cls(
            bridge,
            application=config["browser"]["application"],
            verify_activation=config["activation"]["verify"],
        )

    # -------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------

    def fetch_snapshot(self) -> Result[Snapshot]:
        """Run the enumerate script and parse a brand-new snapshot."""
        raw = self.bridge.run(enumerate_tabs_script(self.application))
        if raw.is_err():
            raw.error.message = f"Failed to get {self.application} tabs: {raw.error.message}"
            return raw

        parsed = parse_snapshot(raw.value)
        if parsed.is_err():
            logger.error(
                "Bridge output could not be parsed",
                operation="fetch_snapshot",
                status="parse_error",
                error=parsed.error.message,
                **parsed.error.context
            )
            return parsed

        logger.debug(
            "Snapshot captured",
            operation="fetch_snapshot",
            status="success",
            metrics={
                "windows": len(parsed.value.windows),
                "tabs": parsed.value.tab_count,
            }
        )
        return parsed

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def get_tabs(self) -> Result[str]:
        """List every window and tab with display numbers and Tab IDs."""
        with _operation("get_tabs") as op:
            fetched = self.fetch_snapshot()
            if fetched.is_err():
                return op.finish(fetched)
            return op.finish(Result.ok(format_directory(fetched.value, self.application)))

    def close_tab_by_id(self, tab_id) -> Result[str]:
        """
        Close the tab carrying ``tab_id``.

        The id is resolved against a snapshot taken now; an unknown id fails
        with NOT_FOUND before any mutation script is sent.
        """
        with _operation("close_tab_by_id", tab_id=tab_id) as op:
            checked = require_positive_int(tab_id, "tabId")
            if checked.is_err():
                return op.finish(checked)

            resolved = self.resolver.resolve(ById(tab_id))
            if resolved.is_err():
                return op.finish(resolved)

            closed = self.bridge.run(close_tab_by_id_script(self.application, tab_id))
            if closed.is_err():
                return op.finish(_wrap_bridge_error(
                    closed, f"Failed to close tab with ID {tab_id}"
                ))

            return op.finish(Result.ok(f"Closed tab with ID {tab_id}"))

    def activate_tab_by_id(self, tab_id) -> Result[str]:
        """
        Focus the tab carrying ``tab_id`` and raise its window to the front.

        Both happen in one bridge call. With verification on, a fresh snapshot
        must then show the tab as the only active tab in its window.
        """
        with _operation("activate_tab_by_id", tab_id=tab_id) as op:
            checked = require_positive_int(tab_id, "tabId")
            if checked.is_err():
                return op.finish(checked)

            resolved = self.resolver.resolve(ById(tab_id))
            if resolved.is_err():
                return op.finish(resolved)

            activated = self.bridge.run(activate_tab_by_id_script(self.application, tab_id))
            if activated.is_err():
                return op.finish(_wrap_bridge_error(
                    activated, f"Failed to activate tab with ID {tab_id}"
                ))

            message = f"Activated tab with ID {tab_id}"
            if self.verify_activation:
                verified = self._verify_single_active(tab_id)
                if verified.is_err():
                    return op.finish(verified)
                if not verified.value:
                    message += f" {UNVERIFIED_ACTIVATION_NOTE}"

            return op.finish(Result.ok(message))

    def close_tab(self, window_index, tab_index) -> Result[str]:
        """
        Deprecated: close the tab at (window_index, tab_index).

        No snapshot is consulted. Several positional closes in a row without
        re-listing will hit shifted positions; this is left to the caller.
        """
        with _operation("close_tab", window_index=window_index, tab_index=tab_index) as op:
            for value, name in ((window_index, "windowIndex"), (tab_index, "tabIndex")):
                checked = require_positive_int(value, name)
                if checked.is_err():
                    return op.finish(checked)

            resolved = self.resolver.resolve(ByPosition(window_index, tab_index))
            address = resolved.value.address

            closed = self.bridge.run(close_tab_by_position_script(
                self.application, address.window_index, address.tab_index
            ))
            if closed.is_err():
                return op.finish(_wrap_bridge_error(
                    closed, f"Failed to close tab at window {window_index}, tab {tab_index}"
                ))

            return op.finish(Result.ok(
                f"Closed tab at window {window_index}, tab {tab_index}. {LEGACY_CLOSE_NOTE}"
            ))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _verify_single_active(self, tab_id: int) -> Result[bool]:
        """Ok(True) when verified, Ok(False) when the re-list itself failed."""
        fetched = self.fetch_snapshot()
        if fetched.is_err():
            # The bridge already confirmed the mutation; only the check is lost
            logger.warning(
                "Could not re-list tabs to verify activation",
                operation="activate_tab_by_id",
                status="unverified",
                tab_id=tab_id,
                error=fetched.error.message
            )
            return Result.ok(False)

        window = TabDirectory(fetched.value).window_of(tab_id)
        active_ids = [tab.id for tab in window.tabs if tab.is_active] if window else []
        if active_ids != [tab_id]:
            return Result.err(Error(
                error_type=ErrorType.BRIDGE_ERROR,
                message=f"Activated tab with ID {tab_id} but it is not the active tab of its window",
                context={"tab_id": tab_id, "active_tab_ids": active_ids}
            ))
        return Result.ok(True)


def _wrap_bridge_error(result: Result, prefix: str) -> Result:
    result.error.message = f"{prefix}: {result.error.message}"
    return result


class _operation:
    """Context manager holding the operation lock and giving an operation its
    trace id, timing and outcome log."""

    def __init__(self, name: str, **context):
        self.name = name
        self.context = context
        self.trace_id = str(uuid4())
        self._token = None
        self._start = 0.0

    def __enter__(self) -> '_operation':
        _OPERATION_LOCK.acquire()
        self._token = trace_id_var.set(self.trace_id)
        self._start = time.perf_counter()
        logger.info(
            f"{self.name} started",
            operation=self.name,
            status="started",
            trace_id=self.trace_id,
            **self.context
        )
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            trace_id_var.reset(self._token)
        finally:
            _OPERATION_LOCK.release()
        return False

    def finish(self, result: Result) -> Result:
        duration_ms = int((time.perf_counter() - self._start) * 1000)
        if result.is_ok():
            logger.info(
                f"{self.name} succeeded",
                operation=self.name,
                status="success",
                trace_id=self.trace_id,
                metrics={"duration_ms": duration_ms},
                **self.context
            )
        else:
            logger.warning(
                f"{self.name} failed",
                operation=self.name,
                status="failed",
                trace_id=self.trace_id,
                error_type=result.error.error_type.value,
                error=result.error.message,
                metrics={"duration_ms": duration_ms},
                **self.context
            )
        return result
