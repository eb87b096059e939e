"""
Tests for settings loading and the user `.env` writer.
"""

import sys

import pytest

from questrade.core import config
from questrade.core.config import AppSettings, write_user_env_vars
from questrade.core.domain.environment import Environment


class TestAppSettings:

    def test_defaults(self, monkeypatch):
        for name in ("CONSUMER_KEY", "REFRESH_TOKEN", "ENVIRONMENT"):
            monkeypatch.delenv(f"QUESTRADE_{name}", raising=False)

        settings = AppSettings(_env_file=None)

        assert settings.consumer_key is None
        assert settings.refresh_token is None
        assert settings.environment is Environment.PRODUCTION
        assert settings.http_timeout_seconds == 30.0
        assert settings.token_refresh_leeway_seconds == 60.0

    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("QUESTRADE_CONSUMER_KEY", "key")
        monkeypatch.setenv("QUESTRADE_REFRESH_TOKEN", "refresh")
        monkeypatch.setenv("QUESTRADE_ENVIRONMENT", "practice")
        monkeypatch.setenv("QUESTRADE_HTTP_TIMEOUT_SECONDS", "5")

        settings = AppSettings(_env_file=None)

        assert settings.consumer_key == "key"
        assert settings.refresh_token.get_secret_value() == "refresh"
        assert settings.environment is Environment.PRACTICE
        assert settings.http_timeout_seconds == 5.0

    @pytest.mark.parametrize("raw", ["Practice", "PRACTICE", " practice "])
    def test_environment_name_is_case_insensitive(self, monkeypatch, raw):
        monkeypatch.setenv("QUESTRADE_ENVIRONMENT", raw)

        assert AppSettings(_env_file=None).environment is Environment.PRACTICE

    def test_reads_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("QUESTRADE_CONSUMER_KEY", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("QUESTRADE_CONSUMER_KEY=from-file\n", encoding="utf-8")

        assert AppSettings(_env_file=env_file).consumer_key == "from-file"

    def test_refresh_token_is_masked(self, monkeypatch):
        monkeypatch.setenv("QUESTRADE_REFRESH_TOKEN", "super-secret")
        assert "super-secret" not in repr(AppSettings(_env_file=None))


class TestWriteUserEnvVars:

    def test_creates_file(self, tmp_path):
        path = write_user_env_vars({"QUESTRADE_REFRESH_TOKEN": "abc"}, env_path=tmp_path / "cfg" / ".env")

        assert path.read_text(encoding="utf-8").splitlines()[1:] == ["QUESTRADE_REFRESH_TOKEN=abc"]

    @pytest.mark.skipif(sys.platform.startswith("win"), reason="POSIX permissions")
    def test_file_is_private(self, tmp_path):
        path = write_user_env_vars({"A": "1"}, env_path=tmp_path / ".env")
        assert path.stat().st_mode & 0o777 == 0o600

    def test_merges_and_skips_none(self, tmp_path):
        env_path = tmp_path / ".env"
        env_path.write_text(
            "# comment\nexport QUESTRADE_CONSUMER_KEY='key'\nQUESTRADE_REFRESH_TOKEN=old\n",
            encoding="utf-8",
        )

        write_user_env_vars(
            {"QUESTRADE_REFRESH_TOKEN": "new", "QUESTRADE_ENVIRONMENT": None},
            env_path=env_path,
        )

        lines = env_path.read_text(encoding="utf-8").splitlines()
        assert "QUESTRADE_CONSUMER_KEY=key" in lines
        assert "QUESTRADE_REFRESH_TOKEN=new" in lines
        assert not any(line.startswith("QUESTRADE_ENVIRONMENT") for line in lines)

    def test_defaults_to_user_env_file(self, tmp_path, monkeypatch):
        target = tmp_path / "user" / ".env"
        monkeypatch.setattr(config, "get_user_env_file", lambda: target)

        assert write_user_env_vars({"A": "1"}) == target
        assert target.exists()


@pytest.mark.skipif(sys.platform != "linux", reason="XDG layout")
def test_xdg_config_home(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert config.get_user_config_dir() == tmp_path / "questrade"
    assert config.get_user_env_file() == tmp_path / "questrade" / ".env"
