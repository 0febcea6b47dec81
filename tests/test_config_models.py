import json

import pytest
from pydantic import ValidationError

from tvdb_provider.config_models import (
    AppConfig,
    ConfigurationValidator,
    ProviderConfig,
    ServerConfig,
    TVDBConfig,
)

CLEAN_ENV = {
    'TVDB_API_KEY': '',
    'TVDB_SUBSCRIBER_PIN': '',
    'TVDB_BASE_URL': '',
    'HOST': '',
    'PORT': '',
    'LOG_LEVEL': '',
    'LOG_DIR': '',
    'DEFAULT_COUNTRY': '',
}


@pytest.fixture
def clean_env(mocker):
    """Blank out every variable the loader reads so the host environment cannot leak in."""
    mocker.patch.dict('os.environ', CLEAN_ENV)


def test_defaults():
    config = AppConfig()

    assert config.tvdb.api_key is None
    assert config.tvdb.base_url == "https://api4.thetvdb.com/v4/"
    assert config.server.port == 3000
    assert config.server.log_level == "INFO"
    assert config.provider.default_country == "US"
    assert config.provider.default_container_size == 20


def test_blank_credentials_become_none():
    tvdb = TVDBConfig(api_key="  ", subscriber_pin=" 1234 ")
    assert tvdb.api_key is None
    assert tvdb.subscriber_pin == "1234"


def test_base_url_must_be_http():
    with pytest.raises(ValidationError):
        TVDBConfig(base_url="ftp://api4.thetvdb.com/v4")


def test_unknown_fields_are_rejected():
    with pytest.raises(ValidationError):
        TVDBConfig(api_key="k", apikey="typo")


def test_log_level_is_normalized():
    assert ServerConfig(log_level="debug").log_level == "DEBUG"
    with pytest.raises(ValidationError):
        ServerConfig(log_level="chatty")


def test_country_is_uppercased():
    assert ProviderConfig(default_country="gb").default_country == "GB"


def test_load_json_file(clean_env, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({
        "tvdb": {"api_key": "from-file"},
        "server": {"port": 8080},
    }))

    config = ConfigurationValidator().load_and_validate_config(str(config_file))

    assert config.tvdb.api_key == "from-file"
    assert config.server.port == 8080


def test_load_yaml_file(clean_env, tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "tvdb:\n"
        "  api_key: yaml-key\n"
        "  subscriber_pin: '0042'\n"
        "provider:\n"
        "  default_country: de\n"
    )

    config = ConfigurationValidator().load_and_validate_config(str(config_file))

    assert config.tvdb.api_key == "yaml-key"
    assert config.tvdb.subscriber_pin == "0042"
    assert config.provider.default_country == "DE"


def test_environment_overrides_file(mocker, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"tvdb": {"api_key": "from-file"}, "server": {"port": 8080}}))
    mocker.patch.dict('os.environ', {**CLEAN_ENV, 'TVDB_API_KEY': 'from-env', 'PORT': '9000', 'LOG_LEVEL': 'debug'})

    config = ConfigurationValidator().load_and_validate_config(str(config_file))

    assert config.tvdb.api_key == "from-env"
    assert config.server.port == 9000
    assert config.server.log_level == "DEBUG"


def test_invalid_port_override_is_skipped(mocker, tmp_path):
    mocker.patch.dict('os.environ', {**CLEAN_ENV, 'TVDB_API_KEY': 'k', 'PORT': 'eighty'})

    config = ConfigurationValidator().load_and_validate_config(str(tmp_path / "missing.json"))

    assert config.server.port == 3000


def test_missing_file_uses_defaults(mocker, tmp_path):
    mocker.patch.dict('os.environ', {**CLEAN_ENV, 'TVDB_API_KEY': 'k'})

    config = ConfigurationValidator().load_and_validate_config(str(tmp_path / "missing.json"))

    assert config.tvdb.api_key == "k"
    assert config.server.host == "0.0.0.0"


def test_missing_api_key_exits(clean_env, tmp_path):
    validator = ConfigurationValidator()

    with pytest.raises(SystemExit):
        validator.load_and_validate_config(str(tmp_path / "missing.json"))

    assert any("TVDB_API_KEY" in error for error in validator.errors)


def test_malformed_file_exits(clean_env, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json")

    with pytest.raises(SystemExit):
        ConfigurationValidator().load_and_validate_config(str(config_file))


def test_non_mapping_file_exits(clean_env, tmp_path):
    config_file = tmp_path / "config.yml"
    config_file.write_text("- just\n- a list\n")

    with pytest.raises(SystemExit):
        ConfigurationValidator().load_and_validate_config(str(config_file))


def test_invalid_values_exit(clean_env, tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"tvdb": {"api_key": "k"}, "server": {"port": 70000}}))

    with pytest.raises(SystemExit):
        ConfigurationValidator().load_and_validate_config(str(config_file))
