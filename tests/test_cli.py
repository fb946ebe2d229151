"""Tests for the command line interface."""

from __future__ import annotations

import json

import pytest

from extradrop import __main__ as cli
from extradrop.backend import DropboxBuilder
from extradrop.config import Settings
from extradrop.transport import HttpResponse
from tests.fakes import FakeTokenEndpoint, token_response


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)


def use_endpoint(monkeypatch: pytest.MonkeyPatch, endpoint: FakeTokenEndpoint) -> None:
    """Make the CLI build backends on top of a fake token endpoint."""

    class FakeEndpointBuilder(DropboxBuilder):
        @classmethod
        def from_settings(cls, settings: Settings) -> DropboxBuilder:
            return super().from_settings(settings).http_transport(endpoint)

    monkeypatch.setattr(cli, "DropboxBuilder", FakeEndpointBuilder)


def run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)
    return exc_info.value.code


class TestCheck:
    """Tests for `extradrop check`."""

    def test_fixed(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
        monkeypatch.setenv("DROPBOX_ACCESS_TOKEN", "T")

        assert run(["check"]) == 0
        assert capsys.readouterr().out == "Credential: fixed\nRoot: /\n"

    def test_refreshable(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        monkeypatch.setenv("DROPBOX_REFRESH_TOKEN", "R")
        monkeypatch.setenv("DROPBOX_CLIENT_ID", "app-key")
        monkeypatch.setenv("DROPBOX_CLIENT_SECRET", "app-secret")
        monkeypatch.setenv("DROPBOX_ROOT", "backups")

        assert run(["check"]) == 0
        assert capsys.readouterr().out == "Credential: refreshable\nRoot: /backups/\n"

    def test_missing_credentials(self, capsys: pytest.CaptureFixture) -> None:
        assert run(["check"]) == 1
        assert capsys.readouterr().err == "Error: access_token or refresh_token must be set\n"

    def test_missing_client_id(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        monkeypatch.setenv("DROPBOX_REFRESH_TOKEN", "R")

        assert run(["check"]) == 1
        assert "client_id must be set when refresh_token is set" in capsys.readouterr().err

    def test_invalid_settings(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        monkeypatch.setenv("DROPBOX_ACCESS_TOKEN", "T")
        monkeypatch.setenv("DROPBOX_ENVIRONMENT", "foo")

        assert run(["check"]) == 1

        err = capsys.readouterr().err
        assert err.startswith("Error: ")
        assert "environment must be one of" in err


class TestToken:
    """Tests for `extradrop token`."""

    def test_fixed_token(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        endpoint = FakeTokenEndpoint()
        use_endpoint(monkeypatch, endpoint)
        monkeypatch.setenv("DROPBOX_ACCESS_TOKEN", "T")

        assert run(["token"]) == 0
        assert capsys.readouterr().out == "T\n"
        assert endpoint.requests == []
        assert endpoint.closed is True

    def test_fixed_token_json(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        use_endpoint(monkeypatch, FakeTokenEndpoint())
        monkeypatch.setenv("DROPBOX_ACCESS_TOKEN", "T")

        assert run(["token", "--json"]) == 0
        assert json.loads(capsys.readouterr().out) == {"access_token": "T", "expires_at": None}

    def test_refreshed_token_json(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        endpoint = FakeTokenEndpoint(token_response("sl.cli"))
        use_endpoint(monkeypatch, endpoint)
        monkeypatch.setenv("DROPBOX_REFRESH_TOKEN", "R")
        monkeypatch.setenv("DROPBOX_CLIENT_ID", "app-key")
        monkeypatch.setenv("DROPBOX_CLIENT_SECRET", "app-secret")

        assert run(["token", "--json"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["access_token"] == "sl.cli"
        assert output["expires_at"] is not None
        assert len(endpoint.requests) == 1

    def test_refresh_failure(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        endpoint = FakeTokenEndpoint(
            HttpResponse(status_code=400, body=b'{"error": "invalid_grant"}')
        )
        use_endpoint(monkeypatch, endpoint)
        monkeypatch.setenv("DROPBOX_REFRESH_TOKEN", "R")
        monkeypatch.setenv("DROPBOX_CLIENT_ID", "app-key")
        monkeypatch.setenv("DROPBOX_CLIENT_SECRET", "app-secret")

        assert run(["token"]) == 1

        err = capsys.readouterr().err
        assert err.startswith("Error: Failed to refresh access token:")
        assert "invalid_grant" in err
        assert endpoint.closed is True
