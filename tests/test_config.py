"""
Tests for ConfigManager
"""

import pytest
import yaml
from pathlib import Path
from apitester.config import ConfigManager, AppConfig, DATABASE_ENV_VAR


@pytest.fixture
def home(tmp_path, monkeypatch):
    """Isolated home and working directory"""
    home = tmp_path / 'home'
    home.mkdir()
    work = tmp_path / 'work'
    work.mkdir()
    monkeypatch.setenv('HOME', str(home))
    monkeypatch.chdir(work)
    monkeypatch.delenv(DATABASE_ENV_VAR, raising=False)
    return home


def write_config(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        yaml.dump(data, f)
    return path


class TestDefaults:
    """Test configuration without any file"""

    def test_defaults(self, home):
        config = ConfigManager().config
        assert config.database_enabled is True
        assert config.database_path == home / '.apitester' / 'data.db'
        assert config.local_dir == home / '.apitester' / 'local'
        assert config.timeout == 30
        assert config.default_method == 'POST'
        assert config.default_headers == 'Content-Type: application/json; charset=utf-8'
        assert config.sources == []

    def test_missing_explicit_file(self, home, tmp_path):
        """Test a missing --config file falls back to defaults"""
        config = ConfigManager(tmp_path / 'nope.yaml').config
        assert config.sources == []

    def test_database_location_disabled(self):
        config = AppConfig(database_enabled=False)
        assert config.database_location() is None


class TestConfigFiles:
    """Test loading values from YAML"""

    def test_user_config(self, home):
        write_config(home / '.apitester' / 'config.yaml', {
            'database': {'path': 'presets.db'},
            'timeout': 10,
            'default_method': 'get',
        })
        config = ConfigManager().config

        assert config.database_path == home / '.apitester' / 'presets.db'
        assert config.timeout == 10
        assert config.default_method == 'GET'

    def test_project_config_overrides_user_config(self, home):
        write_config(home / '.apitester' / 'config.yaml', {'timeout': 10, 'default_method': 'PUT'})
        write_config(Path('.apitester.yaml'), {'timeout': 60})

        config = ConfigManager().config

        assert config.timeout == 60
        assert config.default_method == 'PUT'
        assert len(config.sources) == 2

    def test_explicit_file(self, home, tmp_path):
        config_file = write_config(tmp_path / 'custom.yaml', {
            'database': {'enabled': False},
            'local_dir': '/tmp/apitester-local',
        })
        config = ConfigManager(config_file).config

        assert config.database_location() is None
        assert config.local_dir == Path('/tmp/apitester-local')

    def test_header_mapping_flattened(self, home, tmp_path, monkeypatch):
        """Test header mappings become "Key: Value" lines with env vars expanded"""
        monkeypatch.setenv('API_TOKEN', 'abc')
        config_file = write_config(tmp_path / 'c.yaml', {
            'default_headers': {'Accept': 'application/json', 'Authorization': 'Bearer $API_TOKEN'}
        })
        config = ConfigManager(config_file).config
        assert config.default_headers == "Accept: application/json\nAuthorization: Bearer abc"

    def test_env_overrides_database_path(self, home, tmp_path, monkeypatch):
        config_file = write_config(tmp_path / 'c.yaml', {'database': {'enabled': False}})
        monkeypatch.setenv(DATABASE_ENV_VAR, str(tmp_path / 'env.db'))

        config = ConfigManager(config_file).config

        assert config.database_location() == tmp_path / 'env.db'


class TestInvalidConfig:
    """Test configuration errors"""

    @pytest.mark.parametrize("data", [
        {'timeout': 0},
        {'timeout': 'slow'},
        {'timeout': True},
        {'default_method': 'TRACE'},
        {'database': 'sqlite'},
        ['not', 'a', 'mapping'],
    ])
    def test_invalid_values(self, home, tmp_path, data):
        config_file = write_config(tmp_path / 'bad.yaml', data)
        with pytest.raises(ValueError):
            ConfigManager(config_file)

    def test_invalid_yaml(self, home, tmp_path):
        config_file = tmp_path / 'broken.yaml'
        config_file.write_text("timeout: [1, 2\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            ConfigManager(config_file)


class TestCreateDefaultConfig:
    def test_create_default_config(self, home):
        """Test the generated file loads back cleanly"""
        created = ConfigManager().create_default_config()

        assert created == home / '.apitester' / 'config.yaml'
        config = ConfigManager().config
        assert config.sources == [created]
        assert config.default_headers == 'Content-Type: application/json; charset=utf-8'
