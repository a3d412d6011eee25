from mcp import types

from browser_tabs.errors import ErrorType
from browser_tabs.server import TOOLS, create_server, dispatch_tool


def test_tool_names_and_schemas():
    by_name = {tool.name: tool for tool in TOOLS}
    assert set(by_name) == {"get_tabs", "close_tab_by_id", "activate_tab_by_id", "close_tab"}
    assert by_name["close_tab_by_id"].inputSchema["required"] == ["tabId"]
    assert by_name["close_tab_by_id"].inputSchema["properties"]["tabId"]["minimum"] == 1
    assert by_name["close_tab"].inputSchema["required"] == ["windowIndex", "tabIndex"]
    assert "Deprecated" in by_name["close_tab"].description


def test_dispatch_routes_each_tool(ops, browser):
    assert dispatch_tool(ops, "get_tabs", None).value.startswith("Found 2 open tabs")
    assert dispatch_tool(ops, "activate_tab_by_id", {"tabId": 556}).is_ok()
    assert dispatch_tool(ops, "close_tab_by_id", {"tabId": 555}).is_ok()
    assert dispatch_tool(ops, "close_tab", {"windowIndex": 1, "tabIndex": 1}).is_ok()
    assert browser.windows == []


def test_dispatch_missing_argument_is_validation_error(ops):
    result = dispatch_tool(ops, "close_tab_by_id", {})
    assert result.error.error_type is ErrorType.VALIDATION_ERROR


def test_dispatch_unknown_tool(ops):
    result = dispatch_tool(ops, "open_tab", {})
    assert result.error.error_type is ErrorType.VALIDATION_ERROR
    assert result.error.message == "Unknown tool: open_tab"


def test_dispatch_rejects_non_object_arguments(ops):
    assert dispatch_tool(ops, "get_tabs", ["x"]).is_err()


async def test_call_tool_success_envelope(ops):
    server = create_server(ops)
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name="get_tabs", arguments={}),
    )
    response = await server.request_handlers[types.CallToolRequest](request)

    assert response.root.isError is False
    assert "[Tab ID: 555]" in response.root.content[0].text


async def test_call_tool_failure_envelope(ops, browser):
    server = create_server(ops)
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name="close_tab_by_id", arguments={"tabId": 999}),
    )
    response = await server.request_handlers[types.CallToolRequest](request)

    assert response.root.isError is True
    assert "Tab with ID 999 not found" in response.root.content[0].text
    assert browser.mutations == []


async def test_list_tools_handler(ops):
    server = create_server(ops)
    response = await server.request_handlers[types.ListToolsRequest](
        types.ListToolsRequest(method="tools/list")
    )
    assert [tool.name for tool in response.root.tools] == [tool.name for tool in TOOLS]
