# =============================================================================
# Tab Utilities
# =============================================================================
# Presentation of a snapshot for the calling agent. Every listing is built
# here so display numbers and Tab ID markers stay consistent.

from .directory import Snapshot, Tab, Window

ACTIVE_MARKER = " ★"
UNTITLED = "(untitled)"

GUIDANCE_FOOTER = """\
Instructions for agents:
1. Use the Tab ID (the number in [Tab ID: n]) for every tab operation
2. Display numbers such as 1-2 are for human reference only
3. Call close_tab_by_id or activate_tab_by_id with the Tab ID
4. Window-tab display numbers shift when tabs are opened, closed or moved;
   Tab IDs never change while a tab is open"""


def get_tab_display_title(tab: Tab) -> str:
    """Title shown in listings; empty titles get a placeholder."""
    return tab.title.strip() or UNTITLED


def format_tab(window: Window, tab: Tab) -> str:
    """Format one tab as a three-line block.

    Args:
        window: The tab's window (supplies the display prefix).
        tab: Tab to format.

    Returns:
        ``"  w-t. title ★\\n     url\\n     [Tab ID: n] ★"``
    """
    marker = ACTIVE_MARKER if tab.is_active else ""
    return (
        f"  {window.index}-{tab.index}. {get_tab_display_title(tab)}{marker}\n"
        f"     {tab.url}\n"
        f"     [Tab ID: {tab.id}]{marker}"
    )


def format_window(window: Window) -> str:
    active = window.active_tab
    active_note = f" (Active: Tab ID {active.id})" if active else ""
    lines = [f"Window {window.index}{active_note}:"]
    lines.extend(format_tab(window, tab) for tab in window.tabs)
    return "\n".join(lines)


def format_directory(snapshot: Snapshot, application: str) -> str:
    """
    Render the full directory listing returned by get_tabs.

    Args:
        snapshot: Freshly fetched snapshot
        application: Browser application name for the header

    Returns:
        Multi-line listing: header, one block per window, guidance footer
    """
    count = snapshot.tab_count
    noun = "tab" if count == 1 else "tabs"
    header = f"Found {count} open {noun} in {application}:"

    if not snapshot.windows:
        return f"{header}\n\n(no open windows)"

    body = "\n\n".join(format_window(window) for window in snapshot.windows)
    return f"{header}\n\n{body}\n\n{GUIDANCE_FOOTER}"
