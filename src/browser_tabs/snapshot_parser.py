# =============================================================================
# Snapshot Parser
# =============================================================================
# Bridge output is treated as untrusted: field counts, integers, the active
# flag and the structural invariants are all checked. Anything off fails the
# whole parse rather than producing a partial or defaulted snapshot.

from .directory import Snapshot, Tab, Window
from .errors import Error, ErrorType, Result
from .scripts import FIELD_COUNT, FIELD_DELIMITER

# AppleScript's text form of a boolean
_ACTIVE_FLAGS = {"true": True, "false": False}


def _parse_error(message: str, line_number: int | None = None, line: str | None = None) -> Result:
    context = {}
    if line_number is not None:
        context["line_number"] = line_number
    if line is not None:
        context["line_preview"] = line[:100]
    return Result.err(Error(
        error_type=ErrorType.PARSE_ERROR,
        message=message,
        context=context
    ))


def _parse_int(raw: str, name: str, line_number: int, line: str) -> Result[int]:
    text = raw.strip()
    # int() accepts "+5" and "1_000"; the bridge never emits those
    if not (text.isascii() and text.isdigit()):
        return _parse_error(
            f"Line {line_number}: {name} is not an integer: {raw!r}",
            line_number, line
        )
    return Result.ok(int(text))


def parse_tab_record(line: str, line_number: int) -> Result[tuple[int, Tab]]:
    """
    Decode one delimited record into a Tab.

    Args:
        line: window id|||window index|||tab id|||tab index|||active|||title|||url
        line_number: 1-based line number, for error messages

    Returns:
        Result[tuple[int, Tab]]: Ok with (window index, tab),
        or Err(PARSE_ERROR)
    """
    fields = line.split(FIELD_DELIMITER, FIELD_COUNT - 1)
    if len(fields) < FIELD_COUNT:
        return _parse_error(
            f"Line {line_number}: expected {FIELD_COUNT} fields, got {len(fields)}",
            line_number, line
        )

    window_id_raw, window_index_raw, tab_id_raw, tab_index_raw, active_raw, title, url = fields

    numbers = {}
    for name, raw in (
        ("window id", window_id_raw),
        ("window index", window_index_raw),
        ("tab id", tab_id_raw),
        ("tab index", tab_index_raw),
    ):
        parsed = _parse_int(raw, name, line_number, line)
        if parsed.is_err():
            return parsed
        numbers[name] = parsed.value

    if active_raw not in _ACTIVE_FLAGS:
        return _parse_error(
            f"Line {line_number}: active flag must be 'true' or 'false', got {active_raw!r}",
            line_number, line
        )

    return Result.ok((numbers["window index"], Tab(
        id=numbers["tab id"],
        window_id=numbers["window id"],
        index=numbers["tab index"],
        title=title,
        url=url.rstrip("\r"),
        is_active=_ACTIVE_FLAGS[active_raw],
    )))


def _check_invariants(windows: list[Window]) -> Result[None]:
    """Dense indices, unique tab ids, exactly one active tab per window."""
    seen_ids: set[int] = set()

    for expected_index, window in enumerate(windows, start=1):
        if window.index != expected_index:
            return _parse_error(
                f"Window {window.window_id} has index {window.index}, expected {expected_index}"
            )

        active_count = 0
        for expected_tab_index, tab in enumerate(window.tabs, start=1):
            if tab.index != expected_tab_index:
                return _parse_error(
                    f"Tab {tab.id} in window {window.index} has index {tab.index}, "
                    f"expected {expected_tab_index}"
                )
            if tab.id in seen_ids:
                return _parse_error(f"Duplicate tab id {tab.id}")
            seen_ids.add(tab.id)
            if tab.is_active:
                active_count += 1

        if active_count != 1:
            return _parse_error(
                f"Window {window.index} has {active_count} active tabs, expected exactly 1"
            )

    return Result.ok(None)


def parse_snapshot(raw_output: str) -> Result[Snapshot]:
    """
    Decode the enumerate script's output into a Snapshot.

    Blank lines are skipped. Tabs are grouped by window id in first-seen
    order; each window keeps the order the bridge emitted (never re-sorted).

    Args:
        raw_output: Raw stdout of the enumerate script

    Returns:
        Result[Snapshot]: Ok with the snapshot, or Err(PARSE_ERROR)
    """
    grouped: dict[int, tuple[int, list[Tab]]] = {}

    for line_number, line in enumerate(raw_output.split("\n"), start=1):
        if not line.strip():
            continue

        parsed = parse_tab_record(line, line_number)
        if parsed.is_err():
            return parsed
        window_index, tab = parsed.value

        if tab.window_id not in grouped:
            grouped[tab.window_id] = (window_index, [])
        known_index, tabs = grouped[tab.window_id]
        if known_index != window_index:
            return _parse_error(
                f"Line {line_number}: window {tab.window_id} reported with index "
                f"{window_index} after {known_index}",
                line_number, line
            )
        tabs.append(tab)

    windows = [
        Window(window_id=window_id, index=window_index, tabs=tuple(tabs))
        for window_id, (window_index, tabs) in grouped.items()
    ]

    checked = _check_invariants(windows)
    if checked.is_err():
        return checked

    return Result.ok(Snapshot(windows=tuple(windows)))
