"""Tests for configuration, CLI parsing and the main entrypoint."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from visit_beacon import main as main_module
from visit_beacon.cli import build_config, build_host, parse_args
from visit_beacon.config import BeaconConfig, default_storage_path, read_from_env
from visit_beacon.enums import BeaconStatus
from visit_beacon.host import StaticHost
from visit_beacon.pipeline import BeaconOutcome


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove beacon environment variables for every test."""
    for name in (
        "VISIT_BEACON_COLLECTION_URL",
        "VISIT_BEACON_IP_LOOKUP_URL",
        "VISIT_BEACON_STORAGE_PATH",
        "VISIT_BEACON_DOMAIN_ID",
        "VISIT_BEACON_ACTIVITY",
        "VISIT_BEACON_TIMEOUT",
        "VISIT_BEACON_IP_TIMEOUT",
        "VISIT_BEACON_DEDUP_TTL",
        "VISIT_BEACON_LOG_FILE",
        "VISIT_BEACON_DEV",
    ):
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    """Test environment configuration."""

    def test_defaults(self):
        """Defaults match the documented endpoints and timeouts."""
        cfg = read_from_env()
        assert cfg.collection_url == "http://localhost:8080/api/v1/service/track"
        assert cfg.ip_lookup_url == "https://api.ipify.org?format=json"
        assert cfg.beacon_timeout_secs == 10.0
        assert cfg.ip_lookup_timeout_secs == 5.0
        assert cfg.dedup_ttl_secs == 86400
        assert cfg.activity == "page_visit"
        assert cfg.domain_id is None
        assert cfg.dev is False

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Environment variables override defaults."""
        monkeypatch.setenv("VISIT_BEACON_COLLECTION_URL", "https://collect.example/track")
        monkeypatch.setenv("VISIT_BEACON_STORAGE_PATH", str(tmp_path / "s.json"))
        monkeypatch.setenv("VISIT_BEACON_DOMAIN_ID", "env-site")
        monkeypatch.setenv("VISIT_BEACON_TIMEOUT", "3.5")
        monkeypatch.setenv("VISIT_BEACON_DEV", "true")

        cfg = read_from_env()

        assert cfg.collection_url == "https://collect.example/track"
        assert cfg.storage_path == tmp_path / "s.json"
        assert cfg.domain_id == "env-site"
        assert cfg.beacon_timeout_secs == 3.5
        assert cfg.dev is True

    def test_invalid_number_raises(self, monkeypatch):
        """Non-numeric timeouts are rejected."""
        monkeypatch.setenv("VISIT_BEACON_IP_TIMEOUT", "fast")
        with pytest.raises(ValueError, match="VISIT_BEACON_IP_TIMEOUT"):
            read_from_env()

    def test_dev_storage_is_repo_local(self):
        """Dev mode keeps storage next to the working directory."""
        assert default_storage_path(True) == Path(".visit_beacon") / "storage.json"

    def test_default_storage_under_home(self):
        """Non-dev storage lives in a per-user directory."""
        with patch("visit_beacon.config.platform.system", return_value="Linux"):
            path = default_storage_path(False)
        assert path.name == "storage.json"
        assert "visit-beacon" in path.parts


class TestCli:
    """Test argument parsing into config and host."""

    def test_flags_build_host(self):
        """Page flags become a StaticHost."""
        ns = parse_args([
            "--domain-id", "site-1",
            "--url", "https://a.example/?ref=fb",
            "--referrer", "https://www.google.com/",
            "--user-agent", "UA",
            "--screen", "1280x720",
            "--viewport", "1200x650",
            "--touch",
            "--timezone", "UTC",
        ])

        host = build_host(ns)

        assert host.domain_id == "site-1"
        assert host.url == "https://a.example/?ref=fb"
        assert host.referrer_url == "https://www.google.com/"
        assert host.screen == (1280, 720)
        assert host.viewport == (1200, 650)
        assert host.touch is True
        assert host.tz == "UTC"
        assert host.lang is None

    def test_host_file_with_flag_override(self, tmp_path):
        """A JSON snapshot is loaded and individual flags win."""
        snapshot = tmp_path / "page.json"
        snapshot.write_text(json.dumps({
            "domainId": "from-file",
            "url": "https://a.example/",
            "userAgent": "UA",
            "screenResolution": "1920x1080",
            "hasTouch": False,
            "language": "de-DE",
        }), encoding="utf-8")

        host = build_host(parse_args(["--host-file", str(snapshot), "--domain-id", "from-flag"]))

        assert host.domain_id == "from-flag"
        assert host.ua == "UA"
        assert host.screen == (1920, 1080)
        assert host.touch is False
        assert host.lang == "de-DE"

    def test_missing_host_file(self, tmp_path):
        """A missing snapshot file is an error."""
        with pytest.raises(ValueError, match="File not found"):
            build_host(parse_args(["--host-file", str(tmp_path / "nope.json")]))

    def test_bad_screen_size(self):
        """Sizes must be WxH."""
        with pytest.raises(ValueError):
            build_host(parse_args(["--screen", "huge"]))

    def test_config_overrides(self, tmp_path):
        """Config flags override environment defaults."""
        ns = parse_args([
            "--collection-url", "http://c.test/track",
            "--storage-path", str(tmp_path / "s.json"),
            "--activity", "signup",
            "--beacon-timeout", "2",
            "--dev",
        ])

        cfg = build_config(ns)

        assert cfg.collection_url == "http://c.test/track"
        assert cfg.storage_path == tmp_path / "s.json"
        assert cfg.activity == "signup"
        assert cfg.beacon_timeout_secs == 2.0
        assert cfg.ip_lookup_timeout_secs == 5.0
        assert cfg.dev is True

    def test_no_storage(self):
        """--no-storage disables persisted state."""
        assert build_config(parse_args(["--no-storage"])).storage_path is None

    def test_non_positive_timeout_rejected(self):
        """Timeouts must be positive."""
        with pytest.raises(ValueError, match="positive"):
            build_config(parse_args(["--ip-timeout", "0"]))


class TestStaticHostFromDict:
    """Test snapshot loading."""

    def test_snake_case_keys(self):
        """snake_case keys are accepted."""
        host = StaticHost.from_dict({"user_agent": "UA", "viewport_size": [800, 600], "domain_id": "d"})
        assert host.ua == "UA"
        assert host.viewport == (800, 600)
        assert host.domain_id == "d"
        assert host.script_attribute("data-domain-id") == "d"
        assert host.script_attribute("data-other") is None


class TestMain:
    """Test exit codes of the entrypoint."""

    @pytest.mark.parametrize("status,code", [
        (BeaconStatus.SENT, 0),
        (BeaconStatus.SKIPPED_DUPLICATE, 0),
        (BeaconStatus.FAILED, 1),
        (BeaconStatus.ABORTED, 2),
    ])
    def test_exit_codes(self, status, code):
        """Each outcome maps to an exit code."""
        cfg = BeaconConfig(storage_path=None)
        with patch.object(main_module, "BeaconPipeline") as pipeline_cls:
            pipeline_cls.return_value.run.return_value = BeaconOutcome(status=status)
            assert main_module.main(config=cfg, host=StaticHost(domain_id="x")) == code
            pipeline_cls.return_value.close.assert_called_once()

    def test_uses_file_storage_from_argv(self, tmp_path):
        """argv configures a JSON file storage for the pipeline."""
        storage_file = tmp_path / "s.json"
        with patch.object(main_module, "BeaconPipeline") as pipeline_cls:
            pipeline_cls.return_value.run.return_value = BeaconOutcome(status=BeaconStatus.SENT)

            code = main_module.main(argv=["--url", "https://a.example/", "--storage-path", str(storage_file)])

            assert code == 0
            storage = pipeline_cls.call_args.kwargs["storage"]
            assert storage.path == storage_file

    def test_invalid_arguments(self):
        """Bad arguments exit with 2 instead of raising."""
        assert main_module.main(argv=["--screen", "huge"]) == 2

    @pytest.mark.parametrize("screen", [{"height": 1080}, 1920])
    def test_malformed_host_file_size(self, tmp_path, screen):
        """A snapshot with an unusable size exits with 2."""
        snapshot = tmp_path / "page.json"
        snapshot.write_text(json.dumps({"domainId": "d", "screen": screen}), encoding="utf-8")

        assert main_module.main(argv=["--host-file", str(snapshot), "--no-storage"]) == 2
