"""Tests for the credential-scoped config guard."""

import threading
import time

import pytest
import yaml

from layervuln.core.config import Settings
from layervuln.core.config_guard import CredentialConfigGuard, default_scanner_config
from layervuln.core.exceptions import ConfigIOError, ExecutionError
from layervuln.schemas.config import RegistryCredentials, Scope, ScannerConfig


def _auth_entries(path):
    data = yaml.safe_load(path.read_text())
    return data["registry"]["auth"]


def test_ensure_config_creates_default(tmp_path):
    settings = Settings(resources_dir=tmp_path / "res")
    guard = CredentialConfigGuard.from_settings(settings)

    config = guard.ensure_config()

    assert guard.config_path.exists()
    assert config.output == "json"
    assert config.scope is Scope.SQUASHED
    assert config.db.cache_dir == str(tmp_path / "res" / "db")
    data = yaml.safe_load(guard.config_path.read_text())
    assert data["db"]["update-url"].startswith("https://")
    assert data["registry"]["auth"] == []


def test_ensure_config_keeps_existing_file(guard):
    guard.config_path.write_text("output: table\n")
    assert guard.ensure_config().output == "table"


def test_credentials_present_only_during_invoke(guard):
    seen = []

    def invoke():
        seen.extend(_auth_entries(guard.config_path))
        return "report"

    result = guard.with_credentials("ci", "s3cret", invoke, authority="registry.local")

    assert result == "report"
    assert seen == [
        {"authority": "registry.local", "username": "ci", "password": "s3cret", "token": ""}
    ]
    assert _auth_entries(guard.config_path) == []


def test_credentials_removed_when_invoke_fails(guard):
    def invoke():
        raise ExecutionError("scan failed", returncode=1)

    with pytest.raises(ExecutionError):
        guard.with_credentials("ci", "s3cret", invoke)

    assert _auth_entries(guard.config_path) == []
    assert guard.read_config().registry.auth == []


@pytest.mark.parametrize("username,password", [("", "pw"), ("user", ""), ("", "")])
def test_missing_credentials_do_not_touch_config(guard, username, password):
    before = guard.config_path.read_text()

    def invoke():
        assert guard.config_path.read_text() == before
        return 42

    assert guard.with_credentials(username, password, invoke) == 42
    assert guard.config_path.read_text() == before


def test_removes_only_first_matching_entry(guard):
    config = guard.read_config()
    config.registry.auth.append(RegistryCredentials(authority="other", username="ci", password="s3cret"))
    guard.config_path.write_text(config.to_yaml(include_secrets=True))

    guard.with_credentials("ci", "s3cret", lambda: None)

    remaining = _auth_entries(guard.config_path)
    assert len(remaining) == 1
    assert remaining[0]["authority"] == "other"


def test_credentialed_invocations_are_serialized(guard):
    active = 0
    max_active = 0
    counter_lock = threading.Lock()

    def invoke():
        nonlocal active, max_active
        with counter_lock:
            active += 1
            max_active = max(max_active, active)
        time.sleep(0.02)
        with counter_lock:
            active -= 1

    threads = [
        threading.Thread(target=guard.with_credentials, args=(f"user{i}", "pw", invoke))
        for i in range(5)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert max_active == 1
    assert _auth_entries(guard.config_path) == []


def test_removal_write_failure_surfaces(guard, monkeypatch):
    real_write = guard._write
    calls = []

    def flaky_write(config):
        calls.append(config)
        if len(calls) == 2:
            raise ConfigIOError("disk full")
        real_write(config)

    monkeypatch.setattr(guard, "_write", flaky_write)

    with pytest.raises(ConfigIOError, match="disk full"):
        guard.with_credentials("ci", "s3cret", lambda: "ok")


def test_unreadable_config_raises_config_io_error(tmp_path):
    guard = CredentialConfigGuard(tmp_path / "missing" / "config.yaml")
    with pytest.raises(ConfigIOError):
        guard.with_credentials("ci", "s3cret", lambda: None)


def test_invalid_yaml_raises_config_io_error(guard):
    guard.config_path.write_text("registry: [unclosed\n")
    with pytest.raises(ConfigIOError):
        guard.read_config()


def test_display_rendering_hides_secrets(tmp_path):
    config = default_scanner_config(Settings(resources_dir=tmp_path))
    config.registry.auth.append(
        RegistryCredentials(authority="registry.local", username="ci", password="s3cret", token="tok")
    )

    shown = config.to_yaml()
    written = config.to_yaml(include_secrets=True)

    assert "s3cret" not in shown
    assert yaml.safe_load(shown)["registry"]["auth"] == [{"authority": "registry.local"}]
    assert yaml.safe_load(written)["registry"]["auth"][0]["password"] == "s3cret"
    assert "s3cret" not in repr(config.registry.auth[0])


def test_config_round_trip_uses_scanner_keys():
    config = ScannerConfig.from_yaml(
        "output: json\n"
        "scope: AllLayers\n"
        "db:\n  cache-dir: /tmp/db\n  auto-update: false\n"
        "registry:\n  insecure-use-http: true\n  auth: []\n"
    )
    assert config.scope is Scope.ALL_LAYERS
    assert config.db.cache_dir == "/tmp/db"
    assert config.db.auto_update is False
    assert config.registry.insecure_use_http is True
