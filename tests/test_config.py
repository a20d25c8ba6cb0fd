import pytest
import yaml
from commodity_analytics.utils.config import Config, ConfigError


class TestConfig:
    def test_load_valid_config(self, tmp_path):
        """Test loading a valid config file."""
        config_content = {
            "anomaly": {"baseline_window": 30},
            "logging": {"file": "logs/test.log"},
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(config_content))

        config = Config(str(config_file))

        assert config.get("anomaly.baseline_window") == 30
        assert config.get("logging.file") == "logs/test.log"
        assert config.path == str(config_file)

    def test_get_nested_key(self, tmp_path):
        """Test dotted access to nested values."""
        config_content = {
            "forecast": {
                "trend_window": 60,
                "horizons": [7, 14, 30],
            }
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(config_content))

        config = Config(str(config_file))

        assert config.get("forecast.trend_window") == 60
        assert config.get("forecast.horizons") == [7, 14, 30]

    def test_get_with_default(self, tmp_path):
        """Test missing keys return the default."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"forecast": {"ema_period": 20}}))

        config = Config(str(config_file))

        assert config.get("nonexistent.key", "default") == "default"
        assert config.get("nonexistent.key") is None

    def test_getitem(self, tmp_path):
        """Test dict-style access raises KeyError for missing keys."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"service": {"max_workers": 2}}))

        config = Config(str(config_file))

        assert config["service.max_workers"] == 2
        with pytest.raises(KeyError):
            config["service.missing"]

    def test_section(self, tmp_path):
        """Test sections come back as mappings, empty when absent."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"anomaly": {"min_data_points": 10}, "forecast": None}))

        config = Config(str(config_file))

        assert config.section("anomaly") == {"min_data_points": 10}
        assert config.section("forecast") == {}
        assert config.section("indicators") == {}

    def test_section_not_mapping_raises(self, tmp_path):
        """Test a scalar where a section is expected raises ConfigError."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"anomaly": 5}))

        with pytest.raises(ConfigError):
            Config(str(config_file)).section("anomaly")

    def test_empty_file(self, tmp_path):
        """Test an empty file behaves like an empty mapping."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        assert Config(str(config_file)).get("anything") is None

    def test_missing_file_raises_error(self):
        """Test a missing file raises ConfigError."""
        with pytest.raises(ConfigError):
            Config("/nonexistent/path/config.yaml")

    def test_invalid_yaml_raises_error(self, tmp_path):
        """Test invalid YAML raises ConfigError."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError):
            Config(str(config_file))

    def test_non_mapping_root_raises_error(self, tmp_path):
        """Test a YAML list at the root raises ConfigError."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            Config(str(config_file))
