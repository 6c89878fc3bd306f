import asyncio
import json

import pytest

from creative_scanner import cli
from creative_scanner.config import ScanSettings


def test_parse_args_defaults():
    args = cli.parse_args(["https://preview.example/tag"])
    assert args.url == "https://preview.example/tag"
    assert args.settle_ms is None
    assert args.check_sl is False
    assert args.indent == 2


def test_parse_args_rejects_relative_urls():
    with pytest.raises(ValueError):
        cli.parse_args(["preview.example/tag"])
    with pytest.raises(ValueError):
        cli.parse_args(["https://preview.example", "--max-attempts", "0"])


def test_settings_from_args_overrides_base():
    args = cli.parse_args(
        ["https://preview.example", "--settle-ms", "0", "--max-attempts", "1", "--check-sl", "--headed", "--user-agent", "UA"]
    )
    settings = cli.settings_from_args(args, ScanSettings(navigation_timeout_ms=1234))

    assert settings.settle_delay_ms == 0
    assert settings.max_attempts == 1
    assert settings.navigation_timeout_ms == 1234
    assert settings.check_secondary_phrases is True
    assert settings.headless is False
    assert settings.user_agent == "UA"


def test_run_writes_result_to_output(monkeypatch, tmp_path):
    async def fake_run_scan(url, settings):
        return {"ok": True, "count": 0, "frames": [], "hlMatches": [], "brokenModels": [], "allModelStatuses": []}

    monkeypatch.setattr(cli, "run_scan", fake_run_scan)
    output = tmp_path / "result.json"
    args = cli.parse_args(["https://preview.example", "--output", str(output)])

    result = asyncio.run(cli.run(args))

    assert result["ok"] is True
    assert json.loads(output.read_text(encoding="utf-8"))["count"] == 0


def test_main_exit_status_follows_ok(monkeypatch, capsys):
    async def fake_run_scan(url, settings):
        return {"ok": False, "error": "Connection refused. The server may be down or the URL may be incorrect."}

    monkeypatch.setattr(cli, "run_scan", fake_run_scan)

    assert cli.main(["https://preview.example", "--indent", "0"]) == 1
    printed = json.loads(capsys.readouterr().out)
    assert printed["ok"] is False
