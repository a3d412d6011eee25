# =============================================================================
# AppleScript Templates
# =============================================================================
# Four scripts: one pure query and three pure mutations. Only validated
# integers and an already-validated application name are interpolated.

FIELD_DELIMITER = "|||"
FIELD_COUNT = 7

# Guard shared by every script: `tell application` would otherwise launch
# the browser when it is not running.
_RUNNING_GUARD = '''if not (application "{app}" is running) then error "{app} is not running" number -600
'''

_ENUMERATE_TEMPLATE = '''tell application "{app}"
    set output to ""
    set windowList to every window
    repeat with windowIndex from 1 to count of windowList
        set theWindow to item windowIndex of windowList
        set windowID to id of theWindow
        set activeTabIndex to active tab index of theWindow
        set tabList to every tab of theWindow
        repeat with tabIndex from 1 to count of tabList
            set theTab to item tabIndex of tabList
            set isActive to (tabIndex = activeTabIndex)
            set output to output & windowID & "{sep}" & windowIndex & "{sep}" & (id of theTab) & "{sep}" & tabIndex & "{sep}" & isActive & "{sep}" & (title of theTab) & "{sep}" & (URL of theTab) & linefeed
        end repeat
    end repeat
    return output
end tell
'''

_CLOSE_BY_ID_TEMPLATE = '''tell application "{app}"
    set targetTabID to "{tab_id}"
    repeat with w in (every window)
        repeat with t in (every tab of w)
            if ((id of t) as string) = targetTabID then
                close t
                return "closed " & targetTabID
            end if
        end repeat
    end repeat
    error "Tab with ID " & targetTabID & " not found"
end tell
'''

# Window raise and tab switch happen in one script so the window cannot
# disappear between two bridge calls.
_ACTIVATE_BY_ID_TEMPLATE = '''tell application "{app}"
    set targetTabID to "{tab_id}"
    repeat with w in (every window)
        set tabCount to count of (every tab of w)
        repeat with i from 1 to tabCount
            if ((id of (tab i of w)) as string) = targetTabID then
                set active tab index of w to i
                set index of w to 1
                return "activated " & targetTabID
            end if
        end repeat
    end repeat
    error "Tab with ID " & targetTabID & " not found"
end tell
'''

_CLOSE_BY_POSITION_TEMPLATE = '''tell application "{app}"
    close tab {tab_index} of window {window_index}
    return "closed"
end tell
'''


def _script_int(value, name: str) -> int:
    """Reject anything that is not a non-negative int before interpolation."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def enumerate_tabs_script(app: str) -> str:
    """Query script emitting one delimited record per tab, in positional order."""
    return _RUNNING_GUARD.format(app=app) + _ENUMERATE_TEMPLATE.format(
        app=app, sep=FIELD_DELIMITER
    )


def close_tab_by_id_script(app: str, tab_id: int) -> str:
    tab_id = _script_int(tab_id, "tab_id")
    return _RUNNING_GUARD.format(app=app) + _CLOSE_BY_ID_TEMPLATE.format(
        app=app, tab_id=tab_id
    )


def activate_tab_by_id_script(app: str, tab_id: int) -> str:
    tab_id = _script_int(tab_id, "tab_id")
    return _RUNNING_GUARD.format(app=app) + _ACTIVATE_BY_ID_TEMPLATE.format(
        app=app, tab_id=tab_id
    )


def close_tab_by_position_script(app: str, window_index: int, tab_index: int) -> str:
    """Legacy positional close. Coordinates are not checked against any snapshot."""
    window_index = _script_int(window_index, "window_index")
    tab_index = _script_int(tab_index, "tab_index")
    return _RUNNING_GUARD.format(app=app) + _CLOSE_BY_POSITION_TEMPLATE.format(
        app=app, window_index=window_index, tab_index=tab_index
    )
