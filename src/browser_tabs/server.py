# =============================================================================
# MCP stdio Server
# =============================================================================
# Transport for the tab operations. Results come back as text content;
# failures are raised inside the handler so the SDK marks them isError.

import asyncio
import sys

from loguru import logger
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from . import __version__
from .config_loader import DEFAULT_CONFIG, default_config, load_config
from .errors import Result, validation_error
from .logging_config import APP_NAME, setup_logger
from .operations import TabOperations

_TAB_ID_SCHEMA = {
    "type": "object",
    "properties": {
        "tabId": {
            "type": "integer",
            "minimum": 1,
            "description": "The Tab ID number from [Tab ID: n] in get_tabs output, not the display number",
        },
    },
    "required": ["tabId"],
}

TOOLS = [
    Tool(
        name="get_tabs",
        description=(
            "List all open browser tabs with their stable Tab IDs. Output shows a "
            "display number (1-1, 1-2) and [Tab ID: n] for each tab. Use the Tab ID "
            "for every other tab operation."
        ),
        inputSchema={"type": "object", "properties": {}},
    ),
    Tool(
        name="close_tab_by_id",
        description=(
            "Preferred: close a tab by its Tab ID. Unaffected by tabs being "
            "reordered, closed or moved between windows since the last get_tabs."
        ),
        inputSchema=_TAB_ID_SCHEMA,
    ),
    Tool(
        name="activate_tab_by_id",
        description=(
            "Preferred: focus a tab by its Tab ID, bringing its window to the front "
            "and making it the window's active tab."
        ),
        inputSchema=_TAB_ID_SCHEMA,
    ),
    Tool(
        name="close_tab",
        description=(
            "Deprecated: close a tab by window and tab position. Positions shift "
            "whenever tabs are opened, closed or moved, so this can close the wrong "
            "tab. Use close_tab_by_id unless no Tab ID is available."
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "windowIndex": {
                    "type": "integer",
                    "minimum": 1,
                    "description": "Window position (1-based); changes as windows are focused",
                },
                "tabIndex": {
                    "type": "integer",
                    "minimum": 1,
                    "description": "Tab position (1-based); changes as tabs are reordered or closed",
                },
            },
            "required": ["windowIndex", "tabIndex"],
        },
    ),
]


class ToolFailure(Exception):
    """Raised from the call_tool handler to produce an isError response."""


def dispatch_tool(operations: TabOperations, name: str, arguments: dict | None) -> Result[str]:
    """
    Route one tool call to its tab operation.

    Args:
        operations: Configured TabOperations
        name: Tool name from the request
        arguments: Tool arguments (may be None)

    Returns:
        Result[str]: The operation's result, or Err(VALIDATION_ERROR) for an
        unknown tool or non-object arguments
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        return validation_error("Tool arguments must be an object", tool=name)

    if name == "get_tabs":
        return operations.get_tabs()
    if name == "close_tab_by_id":
        return operations.close_tab_by_id(arguments.get("tabId"))
    if name == "activate_tab_by_id":
        return operations.activate_tab_by_id(arguments.get("tabId"))
    if name == "close_tab":
        return operations.close_tab(arguments.get("windowIndex"), arguments.get("tabIndex"))

    return validation_error(f"Unknown tool: {name}", tool=name)


def create_server(operations: TabOperations) -> Server:
    server = Server(APP_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return TOOLS

    @server.call_tool()
    async def call_tool(name: str, arguments: dict | None) -> list[TextContent]:
        # Operations block on osascript; keep the event loop free meanwhile.
        # TabOperations holds its operation lock, so calls still run one at a time.
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, dispatch_tool, operations, name, arguments)
        if result.is_err():
            raise ToolFailure(f"Error: {result.error.message}")
        return [TextContent(type="text", text=result.value)]

    return server


async def run_server(operations: TabOperations) -> None:
    server = create_server(operations)
    async with stdio_server() as (read_stream, write_stream):
        logger.info(
            "Browser tabs MCP server running on stdio",
            operation="run_server",
            status="ready",
            application=operations.application
        )
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    """Console entry point: configure, then serve until stdin closes."""
    # Bootstrap logging before the config (which may itself fail) is read
    setup_logger(DEFAULT_CONFIG["logging"]["level"], log_to_file=False)

    loaded = load_config()
    if loaded.is_ok():
        config = loaded.value
    else:
        logger.error(
            "Configuration rejected, continuing with defaults",
            operation="main",
            status="config_fallback",
            error_type=loaded.error.error_type.value,
            error=loaded.error.message
        )
        config = default_config()

    setup_logger(config["logging"]["level"].upper(), log_to_file=config["logging"]["file"])
    operations = TabOperations.from_config(config)

    try:
        asyncio.run(run_server(operations))
    except KeyboardInterrupt:
        logger.info("Server interrupted", operation="main", status="stopped")
    except Exception:
        logger.exception("Fatal error running server", operation="main", status="fatal")
        sys.exit(1)


if __name__ == "__main__":
    main()
