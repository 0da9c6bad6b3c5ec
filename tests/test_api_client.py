"""Tests for the project REST API client."""

from unittest.mock import patch

import httpx
import pytest

from stageboard.api import (
    ApiAuthError,
    ApiClientError,
    ApiForbiddenError,
    ApiNotFoundError,
    ApiRejectedError,
    ProjectApiClient,
)


class TestProjectApiClientInit:
    """Tests for ProjectApiClient initialization."""

    def test_urls(self):
        """Paths are relative to the project URL."""
        client = ProjectApiClient("https://pm.example.com/", "42")
        assert client.base_url == "https://pm.example.com"
        assert client.url_for("stages") == "https://pm.example.com/api/projects/42/stages"
        assert (
            client.url_for("/tasks/7/move") == "https://pm.example.com/api/projects/42/tasks/7/move"
        )
        client.close()

    def test_bearer_token_header(self):
        client = ProjectApiClient("https://pm.example.com", "42", token="secret")
        assert client._client.headers["Authorization"] == "Bearer secret"
        client.close()

    def test_no_token_no_header(self):
        client = ProjectApiClient("https://pm.example.com", "42")
        assert "Authorization" not in client._client.headers
        client.close()

    def test_context_manager(self):
        with ProjectApiClient("https://pm.example.com", "42") as client:
            assert client.project_id == "42"


class TestProjectApiClientRequest:
    """Tests for ProjectApiClient.request."""

    @pytest.fixture
    def client(self):
        client = ProjectApiClient("https://pm.example.com", "42", token="t")
        yield client
        client.close()

    def test_get_returns_body(self, client):
        response = httpx.Response(200, json={"stages": []})

        with patch.object(client._client, "request", return_value=response) as mock_request:
            result = client.get("stages")

        assert result == {"stages": []}
        mock_request.assert_called_once_with(
            "GET", "https://pm.example.com/api/projects/42/stages", json=None
        )

    def test_post_sends_json(self, client):
        response = httpx.Response(200, json={"task": {"id": "7"}})

        with patch.object(client._client, "request", return_value=response) as mock_request:
            client.post("tasks/7/move", json={"stageId": None})

        assert mock_request.call_args.kwargs["json"] == {"stageId": None}
        assert mock_request.call_args.args[0] == "POST"

    def test_401_raises_auth_error(self, client):
        response = httpx.Response(401, json={"error": "Unauthorized"})

        with patch.object(client._client, "request", return_value=response):
            with pytest.raises(ApiAuthError) as exc_info:
                client.get("stages")

        assert "Authentication failed" in str(exc_info.value)
        assert exc_info.value.status_code == 401

    def test_403_raises_forbidden(self, client):
        response = httpx.Response(403, json={"error": "Not a project member"})

        with (
            patch.object(client._client, "request", return_value=response),
            pytest.raises(ApiForbiddenError) as exc_info,
        ):
            client.get("tasks")

        assert exc_info.value.message == "Not a project member"

    def test_404_raises_not_found(self, client):
        response = httpx.Response(404, json={"error": "Task not found in this project"})

        with (
            patch.object(client._client, "request", return_value=response),
            pytest.raises(ApiNotFoundError) as exc_info,
        ):
            client.post("tasks/9/move", json={"stageId": "s"})

        assert exc_info.value.message == "Task not found in this project"

    def test_400_keeps_server_message(self, client):
        """The error field of the body is kept for display."""
        response = httpx.Response(
            400, json={"error": "Invalid stage for this project", "details": []}
        )

        with (
            patch.object(client._client, "request", return_value=response),
            pytest.raises(ApiRejectedError) as exc_info,
        ):
            client.post("tasks/1/move", json={"stageId": "other"})

        assert exc_info.value.message == "Invalid stage for this project"
        assert exc_info.value.status_code == 400

    def test_500_without_body(self, client):
        """No message when the body is not a JSON error."""
        response = httpx.Response(500, text="<html>Bad gateway</html>")

        with (
            patch.object(client._client, "request", return_value=response),
            pytest.raises(ApiRejectedError) as exc_info,
        ):
            client.get("stages")

        assert exc_info.value.message is None
        assert str(exc_info.value) == "HTTP 500"

    def test_transport_error_wrapped(self, client):
        """httpx errors become ApiClientError without a server message."""
        error = httpx.ConnectError("connection refused")

        with (
            patch.object(client._client, "request", side_effect=error),
            pytest.raises(ApiClientError) as exc_info,
        ):
            client.get("stages")

        assert exc_info.value.message is None
        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)

    def test_invalid_json(self, client):
        response = httpx.Response(200, text="not json")

        with (
            patch.object(client._client, "request", return_value=response),
            pytest.raises(ApiClientError, match="Invalid JSON"),
        ):
            client.get("stages")

    def test_non_object_body(self, client):
        response = httpx.Response(200, json=[1, 2])

        with (
            patch.object(client._client, "request", return_value=response),
            pytest.raises(ApiClientError, match="expected a JSON object"),
        ):
            client.get("stages")
