# =============================================================================
# Window/Tab Directory
# =============================================================================
# Immutable point-in-time view of the browser. Positional fields only mean
# something relative to the Snapshot that produced them.

from dataclasses import dataclass

from .errors import Error, ErrorType, Result


@dataclass(frozen=True)
class Tab:
    """One open page. ``index`` is 1-based within its window."""
    id: int
    window_id: int
    index: int
    title: str
    url: str
    is_active: bool


@dataclass(frozen=True)
class Window:
    window_id: int
    index: int
    tabs: tuple[Tab, ...]

    @property
    def active_tab(self) -> Tab | None:
        for tab in self.tabs:
            if tab.is_active:
                return tab
        return None


@dataclass(frozen=True)
class Snapshot:
    windows: tuple[Window, ...]

    @property
    def tab_count(self) -> int:
        return sum(len(window.tabs) for window in self.windows)

    def iter_tabs(self):
        for window in self.windows:
            yield from window.tabs


@dataclass(frozen=True)
class PositionalAddress:
    window_index: int
    tab_index: int

    def __str__(self) -> str:
        return f"{self.window_index}-{self.tab_index}"


@dataclass(frozen=True)
class LocatedTab:
    """A tab together with its coordinates in the snapshot it came from."""
    tab: Tab
    address: PositionalAddress


class TabDirectory:
    """Lookups over one Snapshot: by position, by tab id, and all windows."""

    def __init__(self, snapshot: Snapshot):
        self.snapshot = snapshot
        self._by_id: dict[int, LocatedTab] = {}
        self._by_position: dict[PositionalAddress, LocatedTab] = {}
        for window in snapshot.windows:
            for tab in window.tabs:
                located = LocatedTab(
                    tab=tab,
                    address=PositionalAddress(window.index, tab.index)
                )
                self._by_id[tab.id] = located
                self._by_position[located.address] = located

    @property
    def windows(self) -> tuple[Window, ...]:
        return self.snapshot.windows

    def lookup_by_id(self, tab_id: int) -> Result[LocatedTab]:
        """
        Translate a stable tab id into coordinates valid for this snapshot.

        Returns:
            Result[LocatedTab]: Ok with tab and fresh position, or
            Err(NOT_FOUND) if no tab carries that id
        """
        located = self._by_id.get(tab_id)
        if located is None:
            return Result.err(Error(
                error_type=ErrorType.NOT_FOUND,
                message=f"Tab with ID {tab_id} not found",
                context={"tab_id": tab_id, "tab_count": len(self._by_id)}
            ))
        return Result.ok(located)

    def lookup_by_position(self, window_index: int, tab_index: int) -> Result[LocatedTab]:
        located = self._by_position.get(PositionalAddress(window_index, tab_index))
        if located is None:
            return Result.err(Error(
                error_type=ErrorType.NOT_FOUND,
                message=f"No tab at window {window_index}, tab {tab_index}",
                context={"window_index": window_index, "tab_index": tab_index}
            ))
        return Result.ok(located)

    def window_of(self, tab_id: int) -> Window | None:
        located = self._by_id.get(tab_id)
        if located is None:
            return None
        for window in self.snapshot.windows:
            if window.window_id == located.tab.window_id:
                return window
        return None
