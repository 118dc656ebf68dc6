from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
import requests

from fazuh.akademik.api.client import ApiClient
from fazuh.akademik.error import ApiError
from fazuh.akademik.error import SessionExpiredError
from fazuh.akademik.error import TransportError


def make_response(status=200, json_body=None, content=None, reason="OK"):
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.ok = status < 400
    resp.reason = reason
    if json_body is not None:
        resp.json.return_value = json_body
        resp.content = content if content is not None else b"{}"
    else:
        resp.json.side_effect = ValueError("not json")
        resp.content = content if content is not None else b"<html>oops</html>"
    return resp


@pytest.fixture
def conf():
    conf = MagicMock()
    conf.api_base_url = "http://backend.test/api"
    conf.api_timeout = 30
    return conf


@pytest.fixture
def client(conf, context):
    context.store("tok-123", {"id": 1, "name": "Admin", "role": "super_admin"})
    return ApiClient(conf, context)


@pytest.mark.asyncio
async def test_get_sends_bearer_token(client):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(json_body={"ok": True})

        result = await client.get("/ruangan", params={"capacity": 10})

    assert result == {"ok": True}
    args, kwargs = mock_request.call_args
    assert args == ("GET", "http://backend.test/api/ruangan")
    assert kwargs["headers"]["Authorization"] == "Bearer tok-123"
    assert kwargs["headers"]["Accept"] == "application/json"
    assert kwargs["params"] == {"capacity": 10}
    assert kwargs["timeout"] == 30


@pytest.mark.asyncio
async def test_no_authorization_header_without_token(conf, context):
    client = ApiClient(conf, context)
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(json_body={})
        await client.post("/login", json={"login": "a", "password": "b"})

    assert "Authorization" not in mock_request.call_args.kwargs["headers"]


@pytest.mark.asyncio
async def test_empty_body_returns_none(client):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(status=204, json_body={}, content=b"")
        assert await client.delete("/praktikum/jadwal/MK/1") is None


@pytest.mark.asyncio
async def test_download_returns_raw_bytes(client):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(content=b"-- SQL dump")
        data = await client.download("/system/backup", json={"type": "full"})

    assert data == b"-- SQL dump"


@pytest.mark.asyncio
async def test_unauthorized_clears_session(client, context):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(
            status=401, json_body={"message": "Unauthenticated."}, reason="Unauthorized"
        )
        with pytest.raises(SessionExpiredError) as excinfo:
            await client.get("/me")

    assert excinfo.value.status == 401
    assert "Sesi Anda telah berakhir" in excinfo.value.message
    assert context.token is None
    assert context.user == {}
    assert not context.file_path.exists()


@pytest.mark.asyncio
async def test_revoked_token_explains_other_device(client, context):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(
            status=401, json_body={"message": "Token has been revoked"}
        )
        with pytest.raises(SessionExpiredError, match="login di perangkat lain"):
            await client.get("/dashboard/super-admin")

    assert not context.is_authenticated


@pytest.mark.asyncio
async def test_failed_login_keeps_session(client, context):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(
            status=401, json_body={"message": "Username/NIP/NID/NIM/Email atau password salah."}
        )
        with pytest.raises(ApiError) as excinfo:
            await client.post("/login", json={})

    assert not isinstance(excinfo.value, SessionExpiredError)
    assert context.token == "tok-123"


@pytest.mark.asyncio
async def test_error_with_json_message(client):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(
            status=422, json_body={"message": "Jadwal bentrok dengan ruangan lain"}
        )
        with pytest.raises(ApiError, match="Jadwal bentrok") as excinfo:
            await client.post("/kuliah-besar/jadwal/MK", json={})

    assert excinfo.value.status == 422


@pytest.mark.asyncio
async def test_error_with_non_json_body(client):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(status=500, reason="Internal Server Error")
        with pytest.raises(ApiError) as excinfo:
            await client.get("/dashboard/super-admin")

    assert excinfo.value.message == "Server error (500): Internal Server Error"


@pytest.mark.asyncio
async def test_success_with_non_json_body(client):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.return_value = make_response(status=200)
        with pytest.raises(ApiError, match="non-JSON"):
            await client.get("/dashboard/super-admin")


@pytest.mark.asyncio
async def test_transport_failure(client):
    with patch("fazuh.akademik.api.client.requests.request") as mock_request:
        mock_request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(TransportError, match="Tidak dapat terhubung"):
            await client.get("/me")
