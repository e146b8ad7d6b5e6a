"""Tests for settings, logging setup and adapter selection"""

import json
import logging

import pytest

from careerwatch.adapters.notifier.discord import DiscordNotifier
from careerwatch.adapters.notifier.log import LogNotifier
from careerwatch.adapters.repository.json_file import JsonFileRepository
from careerwatch.adapters.repository.memory import MemoryRepository
from careerwatch.app import build_notifier, build_repository, build_runner
from careerwatch.config.logging import JsonFormatter, configure_logging
from careerwatch.config.settings import Settings, find_config_file


def test_urls_read_from_prefixed_env(monkeypatch):
    monkeypatch.setenv(
        "CAREERWATCH_URLS", " https://a.com/jobs, ,https://b.com/careers ,"
    )
    monkeypatch.setenv("CAREERWATCH_SCRAPE_INTERVAL", "0 */10 * * * *")

    settings = Settings()

    assert settings.url_list() == ["https://a.com/jobs", "https://b.com/careers"]
    assert settings.SCRAPE_INTERVAL == "0 */10 * * * *"


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.url_list() == []
    assert settings.NOTIFIER_TYPE == "log"
    assert settings.REPOSITORY_TYPE == "memory"


CONFIG_YAML = """\
URLS:
  - https://a.com/jobs
  - https://b.com/careers
SCRAPE_INTERVAL: "0 9 * * 1-5"
NOTIFIER_TYPE: discord
"""


def test_settings_read_from_config_yaml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text(CONFIG_YAML, encoding="utf-8")

    settings = Settings(_env_file=None)

    assert settings.url_list() == ["https://a.com/jobs", "https://b.com/careers"]
    assert settings.SCRAPE_INTERVAL == "0 9 * * 1-5"
    assert settings.NOTIFIER_TYPE == "discord"


def test_environment_overrides_config_yaml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text(CONFIG_YAML, encoding="utf-8")
    monkeypatch.setenv("CAREERWATCH_NOTIFIER_TYPE", "log")

    settings = Settings(_env_file=None)

    assert settings.NOTIFIER_TYPE == "log"
    assert settings.SCRAPE_INTERVAL == "0 9 * * 1-5"


def test_config_yaml_found_in_config_folder(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert find_config_file() is None

    (tmp_path / "config").mkdir()
    config_file = tmp_path / "config" / "config.yaml"
    config_file.write_text("URLS: https://c.com/jobs\n", encoding="utf-8")

    assert find_config_file().resolve() == config_file.resolve()
    assert Settings(_env_file=None).url_list() == ["https://c.com/jobs"]


def test_build_notifier_selection():
    assert isinstance(build_notifier(Settings(NOTIFIER_TYPE="log")), LogNotifier)

    discord = build_notifier(
        Settings(NOTIFIER_TYPE="Discord", DISCORD_WEBHOOK_URL="https://discord.com/api/webhooks/1/x")
    )
    assert isinstance(discord, DiscordNotifier)


def test_discord_without_webhook_is_rejected():
    with pytest.raises(ValueError, match="webhook"):
        build_notifier(Settings(NOTIFIER_TYPE="discord", DISCORD_WEBHOOK_URL=None))


def test_unknown_notifier_is_rejected():
    with pytest.raises(ValueError, match="Unknown notifier"):
        build_notifier(Settings(NOTIFIER_TYPE="carrier-pigeon"))


def test_build_repository_selection(tmp_path):
    assert isinstance(build_repository(Settings(REPOSITORY_TYPE="memory")), MemoryRepository)

    repo = build_repository(
        Settings(REPOSITORY_TYPE="json", REPOSITORY_PATH=tmp_path / "s.json")
    )
    assert isinstance(repo, JsonFileRepository)
    assert repo.path == tmp_path / "s.json"

    with pytest.raises(ValueError):
        build_repository(Settings(REPOSITORY_TYPE="postgres"))


def test_build_runner_requires_urls():
    with pytest.raises(ValueError, match="No career page URLs"):
        build_runner(Settings(URLS=""))


def test_build_runner_wires_settings():
    runner = build_runner(
        Settings(URLS="https://a.com/jobs,https://b.com/jobs", SOURCE_TIMEOUT=0, NOTIFY_ERRORS=True)
    )
    assert runner.urls == ["https://a.com/jobs", "https://b.com/jobs"]
    assert runner.source_timeout is None
    assert runner.notify_errors is True


def test_json_formatter_renders_one_object():
    record = logging.LogRecord(
        "careerwatch.test", logging.ERROR, __file__, 1, "failed %s", ("A",), None
    )
    entry = json.loads(JsonFormatter().format(record))
    assert entry["level"] == "ERROR"
    assert entry["logger"] == "careerwatch.test"
    assert entry["message"] == "failed A"


def test_configure_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    configure_logging("debug", "json")
    try:
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
