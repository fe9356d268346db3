"""CLI tests using click's CliRunner."""

import json

import pytest
from click.testing import CliRunner

from layervuln.cli.main import cli
from layervuln.core.config import get_settings
from layervuln.core.logging import configure_logging


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    # The CLI points logging at its own stderr, which the runner closes afterwards
    yield
    configure_logging(force=True)


@pytest.fixture
def resources_env(tmp_path, monkeypatch):
    monkeypatch.setenv("RESOURCES_DIR", str(tmp_path / "res"))
    get_settings.cache_clear()
    yield tmp_path / "res"
    get_settings.cache_clear()


@pytest.fixture
def report_file(tmp_path, curl_report):
    path = tmp_path / "report.json"
    path.write_text(json.dumps(curl_report))
    return path


def test_scan_attribute_json(runner, report_file):
    result = runner.invoke(cli, ["scan", "attribute", str(report_file), "--json"])
    assert result.exit_code == 0, result.output
    layers = json.loads(result.stdout)
    assert [layer["layerHash"] for layer in layers] == ["sha256:aaa", "sha256:bbb"]


def test_scan_attribute_table(runner, report_file):
    result = runner.invoke(cli, ["scan", "attribute", str(report_file)], env={"COLUMNS": "200"})
    assert result.exit_code == 0, result.output
    assert "CVE-2020-8177" in result.output


def test_scan_attribute_malformed(runner, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{broken")
    result = runner.invoke(cli, ["scan", "attribute", str(bad)])
    assert result.exit_code == 1


def test_packages_managers(runner):
    result = runner.invoke(cli, ["packages", "managers"])
    assert result.exit_code == 0
    assert "dpkg" in result.output


def test_packages_resolve(runner, report_file, tmp_path):
    info = tmp_path / "rootfs" / "var" / "lib" / "dpkg" / "info"
    info.mkdir(parents=True)
    (info / "curl.list").write_text("/.\n/usr/bin/curl\n")

    result = runner.invoke(
        cli,
        ["packages", "resolve", str(report_file), "--root", str(tmp_path / "rootfs"), "--json"],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["curl"]["files"] == [{"name": "/usr/bin/curl"}]


def test_config_init_and_show_hide_secrets(runner, resources_env):
    result = runner.invoke(cli, ["config", "init"])
    assert result.exit_code == 0, result.output
    config_path = resources_env / ".grype" / "config.yaml"
    assert config_path.exists()

    text = config_path.read_text().replace(
        "auth: []", "auth:\n  - authority: r.local\n    username: ci\n    password: s3cret"
    )
    config_path.write_text(text)

    result = runner.invoke(cli, ["config", "show"])
    assert result.exit_code == 0, result.output
    assert "r.local" in result.output
    assert "s3cret" not in result.output


def test_config_show_missing(runner, resources_env):
    result = runner.invoke(cli, ["config", "show"])
    assert result.exit_code == 1


@pytest.mark.parametrize(
    "args,env",
    [
        (["--username", "ci"], {"REGISTRY_PASSWORD": ""}),
        (["--password", "s3cret"], {"REGISTRY_USERNAME": ""}),
    ],
)
def test_scan_run_requires_both_credentials(runner, resources_env, args, env):
    result = runner.invoke(cli, ["scan", "run", "alpine:3.19", *args], env=env)

    assert result.exit_code == 2
    assert "must be given together" in result.output
