"""
Tests for loading and validating application settings.
"""

import pytest
import yaml

from promptdesk.config import Settings, load_settings, settings_from_dict


@pytest.fixture
def config():
    return {
        "database": {"backend": "sql", "url": "sqlite:///./test.db"},
        "auth": {"session_cookie": "sid", "sentinel_tenant_id": -1},
        "pagination": {"default_page_size": 20, "max_page_size": 50},
        "cors": {"allow_origins": ["http://localhost:5173"]},
        "logging": {"level": "debug"},
    }


class TestSettingsFromDict:
    def test_full_config(self, config):
        settings = settings_from_dict(config)

        assert settings.database_url == "sqlite:///./test.db"
        assert settings.session_cookie == "sid"
        assert (settings.default_page_size, settings.max_page_size) == (20, 50)
        assert settings.cors_origins == ("http://localhost:5173",)
        assert settings.log_level == "DEBUG"

    def test_optional_sections_default(self, config):
        for section in ("pagination", "cors", "logging"):
            del config[section]

        settings = settings_from_dict(config)

        assert (settings.default_page_size, settings.max_page_size) == (10, 100)
        assert settings.cors_origins == ()
        assert settings.log_level == "INFO"

    @pytest.mark.parametrize("section", ["database", "auth"])
    def test_required_sections(self, config, section):
        del config[section]

        with pytest.raises(ValueError, match=section):
            settings_from_dict(config)

    def test_unknown_backend(self, config):
        config["database"]["backend"] = "mongo"

        with pytest.raises(ValueError, match="Unknown database backend"):
            settings_from_dict(config)

    def test_sql_needs_url(self, config):
        del config["database"]["url"]

        with pytest.raises(ValueError, match="url"):
            settings_from_dict(config)

    def test_memory_backend_needs_no_url(self, config):
        config["database"] = {"backend": "memory"}

        assert settings_from_dict(config).database_backend == "memory"

    def test_default_page_size_within_max(self, config):
        config["pagination"] = {"default_page_size": 80, "max_page_size": 50}

        with pytest.raises(ValueError, match="default_page_size"):
            settings_from_dict(config)

    def test_dev_sessions(self, config):
        config["auth"]["dev_sessions"] = [
            {"token": "t1", "user_id": "ada", "tenant_id": 3},
            {"token": "t2", "tenant_id": "4"},
        ]

        settings = settings_from_dict(config)

        assert settings.dev_sessions == (("t1", "ada", 3), ("t2", "t2", 4))

    @pytest.mark.parametrize("entry", [{"tenant_id": 1}, {"token": "t"}, "t1"])
    def test_bad_dev_session(self, config, entry):
        config["auth"]["dev_sessions"] = [entry]

        with pytest.raises(ValueError, match="dev_sessions"):
            settings_from_dict(config)

    def test_not_a_mapping(self):
        with pytest.raises(ValueError):
            settings_from_dict(["database"])


class TestLoadSettings:
    def test_from_file(self, tmp_path, config):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(config))

        assert load_settings(path) == settings_from_dict(config)

    def test_from_environment(self, tmp_path, config, monkeypatch):
        path = tmp_path / "env.yaml"
        config["database"] = {"backend": "memory"}
        path.write_text(yaml.safe_dump(config))
        monkeypatch.setenv("PROMPTDESK_CONFIG", str(path))

        assert load_settings().database_backend == "memory"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_shipped_config_loads(self, monkeypatch):
        monkeypatch.delenv("PROMPTDESK_CONFIG", raising=False)

        assert isinstance(load_settings(), Settings)
