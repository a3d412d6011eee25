from browser_tabs.directory import PositionalAddress, TabDirectory
from browser_tabs.errors import ErrorType
from browser_tabs.resolver import ById, resolve_against
from browser_tabs.snapshot_parser import parse_snapshot


def _directory(browser):
    return TabDirectory(parse_snapshot(browser.render()).value)


def test_lookup_by_id_returns_current_coordinates(two_window_browser):
    directory = _directory(two_window_browser)
    located = directory.lookup_by_id(201).value
    assert located.tab.title == "Docs"
    assert located.address == PositionalAddress(2, 1)
    assert str(located.address) == "2-1"


def test_lookup_by_unknown_id_is_not_found(two_window_browser):
    result = _directory(two_window_browser).lookup_by_id(999)
    assert result.is_err()
    assert result.error.error_type is ErrorType.NOT_FOUND
    assert result.error.message == "Tab with ID 999 not found"


def test_lookup_by_position(two_window_browser):
    directory = _directory(two_window_browser)
    assert directory.lookup_by_position(1, 3).value.tab.id == 103
    assert directory.lookup_by_position(3, 1).error.error_type is ErrorType.NOT_FOUND


def test_every_tab_round_trips_through_identity_and_position(two_window_browser):
    directory = _directory(two_window_browser)
    for tab in directory.snapshot.iter_tabs():
        address = resolve_against(ById(tab.id), directory).value.address
        found = directory.lookup_by_position(address.window_index, address.tab_index)
        assert found.value.tab.id == tab.id


def test_ids_unique_and_indices_dense(two_window_browser):
    snapshot = _directory(two_window_browser).snapshot
    ids = [tab.id for tab in snapshot.iter_tabs()]
    assert len(ids) == len(set(ids))
    assert [w.index for w in snapshot.windows] == list(range(1, len(snapshot.windows) + 1))
    for window in snapshot.windows:
        assert [t.index for t in window.tabs] == list(range(1, len(window.tabs) + 1))


def test_window_of(two_window_browser):
    directory = _directory(two_window_browser)
    assert directory.window_of(102).window_id == 10
    assert directory.window_of(999) is None
    assert len(directory.windows) == 2
