"""Shared fixtures: a scripted stand-in for osascript talking to a browser."""
import re

import pytest

from browser_tabs.errors import Error, ErrorType, Result
from browser_tabs.operations import TabOperations

SAMPLE_OUTPUT = (
    "10|||1|||555|||1|||true|||Home|||https://example.com\n"
    "10|||1|||556|||2|||false|||Docs|||https://example.com/docs\n"
)

_TAB_ID_RE = re.compile(r'set targetTabID to "(\d+)"')
_POSITION_RE = re.compile(r"close tab (\d+) of window (\d+)")


class FakeBrowser:
    """Answers the four scripts the way Chrome would, from in-memory state.

    ``windows`` is a list of ``[window_id, active_position, [(tab_id, title, url), ...]]``
    in front-to-back order.
    """

    def __init__(self, windows):
        self.windows = [[wid, active, list(tabs)] for wid, active, tabs in windows]
        self.scripts = []
        self.fail_with = None
        self.ignore_activation = False

    # -- inspection helpers --------------------------------------------------

    @property
    def mutations(self):
        return [s for s in self.scripts if "active tab index of theWindow" not in s]

    def render(self) -> str:
        lines = []
        for w_index, (wid, active, tabs) in enumerate(self.windows, start=1):
            for t_index, (tid, title, url) in enumerate(tabs, start=1):
                flag = "true" if t_index == active else "false"
                lines.append(f"{wid}|||{w_index}|||{tid}|||{t_index}|||{flag}|||{title}|||{url}")
        return "".join(line + "\n" for line in lines)

    def move_tab(self, tab_id, to_window_pos, to_tab_pos):
        for window in self.windows:
            for i, tab in enumerate(window[2]):
                if tab[0] == tab_id:
                    del window[2][i]
                    window[1] = min(window[1], len(window[2])) or 1
                    target = self.windows[to_window_pos - 1]
                    target[2].insert(to_tab_pos - 1, tab)
                    return
        raise KeyError(tab_id)

    # -- bridge interface ----------------------------------------------------

    def run(self, script: str) -> Result[str]:
        self.scripts.append(script)
        if self.fail_with:
            return Result.err(Error(error_type=ErrorType.BRIDGE_ERROR, message=self.fail_with))

        if "active tab index of theWindow" in script:
            return Result.ok(self.render())

        position = _POSITION_RE.search(script)
        if position:
            tab_pos, window_pos = int(position.group(1)), int(position.group(2))
            if window_pos > len(self.windows) or tab_pos > len(self.windows[window_pos - 1][2]):
                return _bridge_error("Can't get tab of window. Invalid index. (-1719)")
            window = self.windows[window_pos - 1]
            del window[2][tab_pos - 1]
            self._normalise(window)
            return Result.ok("closed\n")

        tab_id = int(_TAB_ID_RE.search(script).group(1))
        for w_pos, window in enumerate(self.windows):
            for t_pos, tab in enumerate(window[2], start=1):
                if tab[0] != tab_id:
                    continue
                if "close t" in script:
                    del window[2][t_pos - 1]
                    self._normalise(window)
                    return Result.ok(f"closed {tab_id}\n")
                if not self.ignore_activation:
                    window[1] = t_pos
                    self.windows.insert(0, self.windows.pop(w_pos))
                return Result.ok(f"activated {tab_id}\n")
        return _bridge_error(f"Tab with ID {tab_id} not found")

    def _normalise(self, window):
        if not window[2]:
            self.windows.remove(window)
        elif window[1] > len(window[2]):
            window[1] = len(window[2])


def _bridge_error(message):
    return Result.err(Error(error_type=ErrorType.BRIDGE_ERROR, message=f"execution error: {message}"))


@pytest.fixture
def browser():
    return FakeBrowser([
        [10, 1, [(555, "Home", "https://example.com"), (556, "Docs", "https://example.com/docs")]],
    ])


@pytest.fixture
def two_window_browser():
    return FakeBrowser([
        [10, 2, [(101, "Inbox", "https://mail.example.com"),
                 (102, "Calendar", "https://cal.example.com"),
                 (103, "News", "https://news.example.com")]],
        [20, 1, [(201, "Docs", "https://docs.example.com")]],
    ])


@pytest.fixture
def ops(browser):
    return TabOperations(browser)
