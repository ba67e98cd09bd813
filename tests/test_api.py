import json

import httpx

from medsuite.config import Settings


def _assert_cors(response):
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type"


def test_options_returns_empty_200_with_cors_headers(client):
    response = client.options("/api")

    assert response.status_code == 200
    assert response.content == b""
    _assert_cors(response)


def test_get_lists_tools_in_registry_order(client, registry):
    response = client.get("/api")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "Medical Assistant Suite API is running!"
    assert payload["availableTools"] == list(registry.list_ids())
    assert payload["version"] == "1.0.0"
    assert payload["timestamp"].endswith("Z")
    assert "success" not in payload
    _assert_cors(response)


def test_other_methods_are_not_allowed(client):
    for method in ("PUT", "PATCH", "DELETE", "TRACE", "FOO"):
        response = client.request(method, "/api")
        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}
        _assert_cors(response)


def test_unknown_path_keeps_default_not_found_body(client):
    response = client.get("/nowhere")

    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


def test_submit_without_tool_type_is_rejected(client, completion_api):
    response = client.post("/api", json={"inputData": {"condition": "anxiety"}})

    assert response.status_code == 400
    payload = response.json()
    assert payload["success"] is False
    assert "required" in payload["error"]
    assert "toolType" in payload["error"]
    assert completion_api.requests == []


def test_submit_without_input_data_is_rejected(client):
    response = client.post("/api", json={"toolType": "mental-health"})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "inputData is required" in response.json()["error"]


def test_submit_with_empty_body_is_rejected(client):
    response = client.post("/api", json={})

    assert response.status_code == 400
    assert "required" in response.json()["error"]


def test_submit_with_invalid_json_is_rejected(client):
    response = client.post(
        "/api", content=b"{not json", headers={"Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "required" in response.json()["error"]


def test_submit_with_non_string_tool_type_is_rejected(client):
    response = client.post("/api", json={"toolType": 7, "inputData": {"a": 1}})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_unknown_tool_lists_every_valid_id(client, completion_api):
    response = client.post(
        "/api", json={"toolType": "not-a-real-tool", "inputData": {"condition": "anxiety"}}
    )

    assert response.status_code == 400
    payload = response.json()
    assert payload["success"] is False
    assert "not-a-real-tool" in payload["error"]
    for tool_id in ("mental-health", "dexa-interpreter", "spirometry-interpreter"):
        assert tool_id in payload["error"]
    assert completion_api.requests == []


def test_missing_credential_is_a_server_error(make_client, completion_api):
    client = make_client(Settings(openai_api_key=None, log_dir=None))

    response = client.post(
        "/api", json={"toolType": "mental-health", "inputData": {"condition": "anxiety"}}
    )

    assert response.status_code == 500
    payload = response.json()
    assert payload["success"] is False
    assert "OpenAI API key not configured" in payload["error"]
    assert "mental-health" in payload["error"]
    assert completion_api.requests == []


def test_successful_submit_relays_generated_text(client):
    response = client.post(
        "/api", json={"toolType": "mental-health", "inputData": {"condition": "anxiety"}}
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["result"] == "Generated plan"
    assert payload["toolType"] == "mental-health"
    assert payload["toolName"] == "Mental Health Care Plan Generator"
    assert payload["timestamp"].endswith("Z")
    _assert_cors(response)


def test_submit_sends_one_user_message_with_tool_parameters(client, completion_api):
    client.post(
        "/api", json={"toolType": "mental-health", "inputData": {"condition": "anxiety"}}
    )

    assert len(completion_api.requests) == 1
    request = completion_api.requests[0]
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer sk-test"

    body = json.loads(request.content)
    assert body["model"] == "gpt-4o-mini"
    assert body["temperature"] == 0.3
    assert body["max_tokens"] == 4000
    assert len(body["messages"]) == 1
    assert body["messages"][0]["role"] == "user"
    assert '"condition": "anxiety"' in body["messages"][0]["content"]
    assert "{DATE}" not in body["messages"][0]["content"]
    assert "{INPUT_DATA}" not in body["messages"][0]["content"]


def test_submit_uses_per_tool_model_parameters(client, completion_api):
    client.post("/api", json={"toolType": "dexa-interpreter", "inputData": {"site": "L1-L4"}})

    body = json.loads(completion_api.requests[0].content)
    assert body["model"] == "gpt-4o"
    assert body["temperature"] == 0.2
    assert body["max_tokens"] == 3000


def test_upstream_error_message_is_preserved(client, completion_api):
    completion_api.status_code = 401
    completion_api.body = {"error": {"message": "Incorrect API key provided: sk-test."}}

    response = client.post(
        "/api", json={"toolType": "mental-health", "inputData": {"condition": "anxiety"}}
    )

    assert response.status_code == 500
    payload = response.json()
    assert payload["success"] is False
    assert "Incorrect API key provided: sk-test." in payload["error"]
    assert len(completion_api.requests) == 1


def test_upstream_error_without_message_uses_generic_text(client, completion_api):
    completion_api.status_code = 502
    completion_api.body = {}

    response = client.post(
        "/api", json={"toolType": "spirometry-interpreter", "inputData": {"fev1": 2.1}}
    )

    assert response.status_code == 500
    assert "OpenAI API error" in response.json()["error"]


def test_upstream_connection_failure_is_a_server_error(client, completion_api):
    completion_api.exc = httpx.ConnectError("connection refused")

    response = client.post(
        "/api", json={"toolType": "mental-health", "inputData": {"condition": "anxiety"}}
    )

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "mental-health" in response.json()["error"]


def test_upstream_timeout_is_a_server_error(client, completion_api):
    completion_api.exc = httpx.ReadTimeout("read timed out")

    response = client.post(
        "/api", json={"toolType": "mental-health", "inputData": {"condition": "anxiety"}}
    )

    assert response.status_code == 500
    assert "timed out" in response.json()["error"]


def test_upstream_response_without_text_is_a_server_error(client, completion_api):
    completion_api.body = {"choices": []}

    response = client.post(
        "/api", json={"toolType": "mental-health", "inputData": {"condition": "anxiety"}}
    )

    assert response.status_code == 500
    assert "no completion" in response.json()["error"]


def test_allowed_origin_is_echoed_when_origins_are_restricted(make_client):
    client = make_client(
        Settings(
            openai_api_key="sk-test",
            log_dir=None,
            cors_origins=("https://a.example", "https://b.example"),
        )
    )

    response = client.get("/api", headers={"Origin": "https://b.example"})

    assert response.headers["access-control-allow-origin"] == "https://b.example"
    assert response.headers["vary"] == "Origin"


def test_health_reports_credential_and_tools(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "api_key_configured": True,
        "tool_count": 3,
        "version": "1.0.0",
    }


def test_health_is_unhealthy_without_credential(make_client):
    client = make_client(Settings(openai_api_key=None, log_dir=None))

    response = client.get("/health")

    assert response.json()["status"] == "unhealthy"
    assert response.json()["api_key_configured"] is False
