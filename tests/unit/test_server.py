"""Tests for the stdio JSON request loop."""

import io
import json
from unittest.mock import Mock

import pytest

from tubevault import __version__
from tubevault.presentation.server import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    StdioServer,
)
from tubevault.presentation.tools import ToolService, text_result


@pytest.fixture
def tools():
    service = Mock(spec=ToolService)
    service.list_tools.return_value = [{"name": "youtube_search", "description": "", "inputSchema": {}}]
    service.call_tool.return_value = text_result(["https://www.youtube.com/watch?v=dQw4w9WgXcQ"])
    return service


@pytest.fixture
def server(tools):
    return StdioServer(tools, stdin=io.StringIO(), stdout=io.StringIO())


def test_initialize(server):
    response = server.handle_request({"id": 1, "method": "initialize"})

    assert response == {
        "jsonrpc": "2.0",
        "id": 1,
        "result": {
            "serverInfo": {"name": "tubevault", "version": __version__},
            "capabilities": {"tools": {}},
        },
    }


def test_tools_list(server):
    response = server.handle_request({"id": "a", "method": "tools/list"})

    assert response["result"]["tools"][0]["name"] == "youtube_search"


def test_tools_call(server, tools):
    response = server.handle_request({
        "id": 2,
        "method": "tools/call",
        "params": {"name": "youtube_search", "arguments": {"query": "rick"}},
    })

    tools.call_tool.assert_called_once_with("youtube_search", {"query": "rick"})
    assert response["result"]["isError"] is False


def test_tools_call_without_arguments(server, tools):
    server.handle_request({"id": 2, "method": "tools/call", "params": {"name": "list_s3_videos"}})

    tools.call_tool.assert_called_once_with("list_s3_videos", {})


@pytest.mark.parametrize("params", [{}, {"name": 5}, {"name": "x", "arguments": [1, 2]}])
def test_tools_call_invalid_params(server, tools, params):
    response = server.handle_request({"id": 3, "method": "tools/call", "params": params})

    assert response["error"]["code"] == INVALID_PARAMS
    tools.call_tool.assert_not_called()


def test_unknown_method(server):
    response = server.handle_request({"id": 4, "method": "resources/list"})

    assert response["error"]["code"] == METHOD_NOT_FOUND


@pytest.mark.parametrize("request_body", [[], {"id": 1}, {"id": 1, "method": 7}])
def test_invalid_request(server, request_body):
    assert server.handle_request(request_body)["error"]["code"] == INVALID_REQUEST


def test_internal_error(server, tools):
    tools.list_tools.side_effect = RuntimeError("broken")

    response = server.handle_request({"id": 5, "method": "tools/list"})

    assert response == {
        "jsonrpc": "2.0",
        "id": 5,
        "error": {"code": INTERNAL_ERROR, "message": "broken"},
    }


def test_notification_gets_no_response(server, tools):
    assert server.handle_request({"method": "tools/list"}) is None
    tools.list_tools.assert_called_once()


@pytest.mark.parametrize("request_body", [
    {"method": "notifications/initialized"},
    {"method": 7},
    {"method": "tools/call", "params": {"name": 5}},
])
def test_notification_errors_are_not_answered(server, tools, request_body):
    assert server.handle_request(request_body) is None
    tools.call_tool.assert_not_called()


def test_notification_internal_error_is_not_answered(server, tools):
    tools.list_tools.side_effect = RuntimeError("broken")

    assert server.handle_request({"method": "tools/list"}) is None


def test_handle_line_parse_error(server):
    response = json.loads(server.handle_line("{not json"))

    assert response["jsonrpc"] == "2.0"
    assert response["id"] is None
    assert response["error"]["code"] == PARSE_ERROR


def test_handle_blank_line(server):
    assert server.handle_line("   \n") is None


def test_serve_forever(tools):
    stdin = io.StringIO(
        '{"id": 1, "method": "initialize"}\n'
        '\n'
        '{"method": "tools/list"}\n'
        '{"method": "notifications/initialized"}\n'
        '{"id": 2, "method": "tools/list"}\n'
    )
    stdout = io.StringIO()

    StdioServer(tools, stdin=stdin, stdout=stdout).serve_forever()

    lines = stdout.getvalue().splitlines()
    assert [json.loads(line)["id"] for line in lines] == [1, 2]
    assert all(json.loads(line)["jsonrpc"] == "2.0" for line in lines)
