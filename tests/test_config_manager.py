import json

import pytest

from config_manager import ConfigManager, ConfigValidationError


def write_config(tmp_path, payload):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_defaults_without_file():
    config = ConfigManager()

    assert config.get("defaults", "output") == "out.png"
    assert config.get("defaults", "threshold") == 0.5
    assert config.get("defaults", "seed") is None
    assert config.get("defaults", "missing", default=3) == 3


def test_file_values_merge_over_defaults(tmp_path):
    path = write_config(tmp_path, {"defaults": {"threshold": 0.8}})

    config = ConfigManager(path)

    assert config.get("defaults", "threshold") == 0.8
    assert config.get("defaults", "output") == "out.png"


def test_defaults_are_not_shared_between_instances(tmp_path):
    ConfigManager(write_config(tmp_path, {"defaults": {"output": "x.png"}}))

    assert ConfigManager().get("defaults", "output") == "out.png"


def test_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigValidationError, match="Invalid JSON"):
        ConfigManager(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigValidationError, match="not found"):
        ConfigManager(str(tmp_path / "nope.json"))


def test_bad_types_are_all_reported(tmp_path):
    path = write_config(tmp_path, {"defaults": {"threshold": "high", "seed": 1.5, "output": ""}})

    with pytest.raises(ConfigValidationError) as excinfo:
        ConfigManager(path)

    message = str(excinfo.value)
    assert "threshold" in message
    assert "seed" in message
    assert "output" in message


def test_top_level_must_be_object(tmp_path):
    with pytest.raises(ConfigValidationError):
        ConfigManager(write_config(tmp_path, [1, 2, 3]))
