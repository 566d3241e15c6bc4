"""Tests for credential sources and resolution order."""

from __future__ import annotations

import json
import subprocess
from dataclasses import replace
from pathlib import Path

import pytest
from keyring.errors import KeyringError, NoKeyringError
from result import Err, Ok

from cumon.config import Config
from cumon.errors import NoCredentialError
from cumon.services.credentials import (
    CredentialResolver,
    CredentialsFileSource,
    KeyringSource,
    SecurityCommandSource,
    parse_credential,
)


class StaticSource:
    def __init__(self, name: str, payload: str | None) -> None:
        self.name = name
        self.payload = payload
        self.reads = 0

    def read(self) -> str | None:
        self.reads += 1
        return self.payload


NEW_FORMAT = json.dumps(
    {
        "claudeAiOauth": {
            "accessToken": "t1",
            "refreshToken": "r1",
            "subscriptionType": "max",
            "rateLimitTier": "default_claude_max_5x",
        }
    }
)


def test_parse_new_format() -> None:
    cred = parse_credential(NEW_FORMAT)
    assert cred is not None
    assert cred.access_token == "t1"
    assert cred.subscription_type == "max"
    assert cred.tier_label == "5X"


@pytest.mark.parametrize(
    ("payload", "token"),
    [
        ('{"claudeAiOauth": {"accessToken": "t1"}}', "t1"),
        ('{"accessToken": "t2"}', "t2"),
        ('{"claudeAiOauth": {"subscriptionType": "pro"}, "accessToken": "t3"}', "t3"),
    ],
)
def test_resolver_accepts_both_shapes(payload: str, token: str) -> None:
    result = CredentialResolver([StaticSource("s", payload)]).resolve()
    assert isinstance(result, Ok)
    assert result.ok_value.access_token == token


def test_legacy_format_has_no_tier_metadata() -> None:
    cred = parse_credential('{"accessToken": "t2"}')
    assert cred is not None
    assert cred.subscription_type is None
    assert cred.rate_limit_tier is None
    assert cred.tier_label is None


@pytest.mark.parametrize(
    "payload",
    ["{}", "", "not json", "[]", '{"accessToken": ""}', '{"accessToken": 5}', '"token"'],
)
def test_unusable_payloads_fail_with_no_credential(payload: str) -> None:
    result = CredentialResolver([StaticSource("s", payload)]).resolve()
    assert isinstance(result, Err)
    assert isinstance(result.err_value, NoCredentialError)


def test_resolver_falls_back_in_order_and_stops_at_first_hit() -> None:
    broken = StaticSource("command", "garbage")
    missing = StaticSource("missing", None)
    good = StaticSource("keyring", '{"accessToken": "t2"}')
    never = StaticSource("file", '{"accessToken": "t9"}')

    result = CredentialResolver([broken, missing, good, never]).resolve()

    assert isinstance(result, Ok)
    assert result.ok_value.access_token == "t2"
    assert (broken.reads, missing.reads, good.reads, never.reads) == (1, 1, 1, 0)


def test_resolver_reads_fresh_every_call() -> None:
    source = StaticSource("s", '{"accessToken": "old"}')
    resolver = CredentialResolver([source])
    assert resolver.resolve().unwrap().access_token == "old"
    source.payload = '{"accessToken": "new"}'
    assert resolver.resolve().unwrap().access_token == "new"
    assert source.reads == 2


def test_resolver_without_sources() -> None:
    assert isinstance(CredentialResolver([]).resolve(), Err)


def test_security_command_success(monkeypatch) -> None:
    calls: list[list[str]] = []

    def fake_run(args, **kwargs):  # type: ignore[no-untyped-def]
        calls.append(args)
        assert kwargs["timeout"] == 2.0
        return subprocess.CompletedProcess(args, 0, stdout='{"accessToken": "x"}\n', stderr="")

    monkeypatch.setattr("cumon.services.credentials.subprocess.run", fake_run)
    source = SecurityCommandSource("Claude Code-credentials", timeout=2.0)
    assert source.read() == '{"accessToken": "x"}'
    assert calls == [
        ["/usr/bin/security", "find-generic-password", "-s", "Claude Code-credentials", "-w"]
    ]


def test_security_command_nonzero_exit(monkeypatch) -> None:
    monkeypatch.setattr(
        "cumon.services.credentials.subprocess.run",
        lambda args, **_: subprocess.CompletedProcess(args, 44, stdout="", stderr="not found"),
    )
    assert SecurityCommandSource("svc").read() is None


@pytest.mark.parametrize(
    "exc",
    [FileNotFoundError("security"), subprocess.TimeoutExpired(["security"], 5.0)],
)
def test_security_command_process_errors(monkeypatch, exc: Exception) -> None:
    def fake_run(args, **kwargs):  # type: ignore[no-untyped-def]
        raise exc

    monkeypatch.setattr("cumon.services.credentials.subprocess.run", fake_run)
    assert SecurityCommandSource("svc").read() is None


def test_keyring_source(monkeypatch) -> None:
    seen: list[tuple[str, str]] = []

    def fake_get_password(service: str, account: str) -> str:
        seen.append((service, account))
        return '{"accessToken": "k"}'

    monkeypatch.setattr("cumon.services.credentials.keyring.get_password", fake_get_password)
    assert KeyringSource("svc", "alice").read() == '{"accessToken": "k"}'
    assert seen == [("svc", "alice")]


def test_keyring_source_defaults_to_login_user(monkeypatch) -> None:
    seen: list[str] = []
    monkeypatch.setattr("cumon.services.credentials.getpass.getuser", lambda: "bob")
    monkeypatch.setattr(
        "cumon.services.credentials.keyring.get_password",
        lambda service, account: seen.append(account),
    )
    assert KeyringSource("svc").read() is None
    assert seen == ["bob"]


@pytest.mark.parametrize("exc", [KeyringError("locked"), NoKeyringError("no backend")])
def test_keyring_source_backend_errors(monkeypatch, exc: Exception) -> None:
    def fake_get_password(service: str, account: str) -> str:
        raise exc

    monkeypatch.setattr("cumon.services.credentials.keyring.get_password", fake_get_password)
    assert KeyringSource("svc", "alice").read() is None


def test_credentials_file_source(tmp_path: Path) -> None:
    path = tmp_path / ".credentials.json"
    assert CredentialsFileSource(path).read() is None
    path.write_text(NEW_FORMAT, encoding="utf-8")
    assert CredentialsFileSource(path).read() == NEW_FORMAT


def test_from_config_source_order(monkeypatch, test_config: Config) -> None:
    order: list[str] = []

    def fake_run(args, **kwargs):  # type: ignore[no-untyped-def]
        order.append("command")
        return subprocess.CompletedProcess(args, 1, stdout="", stderr="")

    def fake_get_password(service: str, account: str) -> None:
        order.append("keyring")
        return None

    monkeypatch.setattr("cumon.services.credentials.subprocess.run", fake_run)
    monkeypatch.setattr("cumon.services.credentials.keyring.get_password", fake_get_password)
    config = replace(test_config, keychain_account="tester")
    config.credentials_path.write_text('{"accessToken": "from-file"}', encoding="utf-8")

    result = CredentialResolver.from_config(config).resolve()

    assert order == ["command", "keyring"]
    assert result.unwrap().access_token == "from-file"
