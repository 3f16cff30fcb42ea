"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from gatehouse.config import AuthConfig, Config


class TestAuthConfig:
    def test_defaults(self):
        config = AuthConfig()

        assert config.github.scope == ["user:email"]
        assert config.jwt.algorithm == "HS256"
        assert config.jwt.refresh_token_expire_minutes == 2
        assert config.default_role == "user"
        assert config.user_fields == []

    def test_accepts_known_user_fields(self):
        config = AuthConfig(user_fields=["email", "display_name"])

        assert config.user_fields == ["email", "display_name"]

    def test_rejects_unknown_user_fields(self):
        with pytest.raises(ValidationError, match="Unknown user fields: password"):
            AuthConfig(user_fields=["email", "password"])


class TestConfigSources:
    def test_nested_env_override(self, monkeypatch):
        monkeypatch.setenv("GATEHOUSE_AUTH__DEFAULT_ROLE", "member")
        monkeypatch.setenv("GATEHOUSE_AUTH__JWT__ACCESS_TOKEN_EXPIRE_MINUTES", "5")

        config = Config()

        assert config.auth.default_role == "member"
        assert config.auth.jwt.access_token_expire_minutes == 5

    def test_yaml_file(self, monkeypatch, tmp_path):
        config_file = tmp_path / "gatehouse.yaml"
        config_file.write_text(
            "auth:\n"
            "  success_redirect_url: https://app.example/welcome?from=github\n"
            "  github:\n"
            "    client_id: yaml-client\n"
            "database:\n"
            "  url: sqlite+aiosqlite:///./yaml.db\n"
        )
        monkeypatch.setenv("GATEHOUSE_CONFIG_FILE", str(config_file))

        config = Config()

        assert config.auth.success_redirect_url == "https://app.example/welcome?from=github"
        assert config.auth.github.client_id == "yaml-client"
        assert config.database.url == "sqlite+aiosqlite:///./yaml.db"

    def test_env_beats_yaml(self, monkeypatch, tmp_path):
        config_file = tmp_path / "gatehouse.yaml"
        config_file.write_text("auth:\n  default_role: from-yaml\n")
        monkeypatch.setenv("GATEHOUSE_CONFIG_FILE", str(config_file))
        monkeypatch.setenv("GATEHOUSE_AUTH__DEFAULT_ROLE", "from-env")

        assert Config().auth.default_role == "from-env"
