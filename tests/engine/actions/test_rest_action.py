# tests/engine/actions/test_rest_action.py
import json
import httpx
import pytest

from actionbuttons.engine.actions.chain import ActionChainExecutor
from actionbuttons.engine.platform import RestClient
from actionbuttons.services.exceptions import InvalidConfigurationError

pytestmark = pytest.mark.asyncio

@pytest.fixture
def requests():
    return []

@pytest.fixture
def responses():
    """Maps a request path to (status, json body)."""
    return {}

@pytest.fixture
def rest_client(requests, responses, test_settings):
    def handler(request: httpx.Request):
        requests.append(request)
        status, body = responses.get(request.url.path, (404, {"message": "Not found"}))
        return httpx.Response(status, json=body)

    http_client = httpx.AsyncClient(base_url="https://bi.example.com", transport=httpx.MockTransport(handler))
    return RestClient(http_client=http_client, settings=test_settings)

@pytest.fixture
def rest_executor(session, dialogs, log_sink, test_settings, widget_state, rest_client):
    return ActionChainExecutor(
        session=session, dialogs=dialogs, rest=rest_client, log_sink=log_sink,
        settings=test_settings, state=widget_state
    )

async def test_whole_body_is_written_to_the_variable(rest_executor, session, responses, requests):
    # 1. Setup
    responses["/api/stats"] = (200, {"count": 3, "items": ["a", "b"]})

    # 2. Execute
    result = await rest_executor.run([{
        "kind": "callRestApi", "restUrl": "/api/stats", "restMethod": "post",
        "restHeaders": {"X-Key": "secret"}, "restBody": '{"q": 1}', "variable": "vStats"
    }])

    # 3. Assert
    assert result is True
    assert requests[0].method == "POST"
    assert requests[0].headers["x-key"] == "secret"
    assert requests[0].content == b'{"q": 1}'
    assert session.calls == [("str", "vStats", json.dumps({"count": 3, "items": ["a", "b"]}))]

async def test_json_pointer_mapping_and_clearing(rest_executor, session, responses):
    responses["/api/stats"] = (200, {"count": 3, "meta": {"a/b": "x'y"}, "items": [{"id": 7}]})

    await rest_executor.run([{
        "kind": "callRestApi", "restUrl": "/api/stats", "restClearVariables": True,
        "restResponseMapping": [
            {"pointer": "/count", "variable": "vCount"},
            {"pointer": "/meta/a~1b", "variable": "vMeta"},
            {"pointer": "/items/0", "variable": "vFirst"},
            {"pointer": "/missing", "variable": "vMissing"},
        ]
    }])

    assert session.calls == [
        # Cleared before the call
        ("str", "vCount", ""), ("str", "vMeta", ""), ("str", "vFirst", ""), ("str", "vMissing", ""),
        ("num", "vCount", 3),
        ("str", "vMeta", "x''y"),
        ("str", "vFirst", '{"id": 7}'),
        ("str", "vMissing", ""),
    ]

async def test_failed_call_reports_and_stops(rest_executor, session, dialogs, caplog):
    result = await rest_executor.run([
        {"kind": "callRestApi", "restUrl": "/api/broken", "variable": "vOut"},
        {"kind": "setVariable", "variable": "vNext", "value": 1},
    ])

    assert result is False
    assert dialogs.titles() == ["REST call failed"]
    assert "404" in dialogs.dialogs[0].input.message
    assert session.calls == []
    assert "REST call to '/api/broken' failed" in caplog.text

async def test_missing_url_continues(rest_executor, requests):
    chain_state = await rest_executor.run_with_state([{"kind": "callRestApi", "variable": "vOut"}])

    assert chain_state.status == "COMPLETED"
    assert requests == []

async def test_missing_rest_client_is_a_configuration_error(executor):
    with pytest.raises(InvalidConfigurationError):
        await executor.run([{"kind": "callRestApi", "restUrl": "/api/stats"}])
