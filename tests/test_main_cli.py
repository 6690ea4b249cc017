import httpx

import main
from main import _parse_args


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"
    assert args.port == 3000


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_users_subcommand_still_available() -> None:
    args = _parse_args(["users", "--service-url", "http://example.test"])
    assert args.command == "users"
    assert args.service_url == "http://example.test"


def test_list_users_prints_table(monkeypatch, capsys) -> None:
    def fake_get(url, timeout):
        assert url == "http://example.test/api/users"
        request = httpx.Request("GET", url)
        return httpx.Response(
            200,
            json={
                "success": True,
                "total": 1,
                "data": [
                    {
                        "id": "1",
                        "uid": "firebase-uid-001",
                        "name": "Alice Johnson",
                        "email": "alice@example.com",
                        "role": "admin",
                        "createdAt": "2024-01-15T08:00:00Z",
                        "lastLogin": "2024-06-01T10:30:00Z",
                    }
                ],
            },
            request=request,
        )

    monkeypatch.setattr(httpx, "get", fake_get)

    assert main._list_users("http://example.test/") == 0
    output = capsys.readouterr().out
    assert "1 user(s) found" in output
    assert "Alice Johnson" in output


def test_list_users_reports_connection_errors(monkeypatch, capsys) -> None:
    def fake_get(url, timeout):
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(httpx, "get", fake_get)

    assert main._list_users("http://example.test") == 1
    assert "Failed to contact the service" in capsys.readouterr().out
