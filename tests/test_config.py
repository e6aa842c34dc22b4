"""Tests for configuration loading and validation."""

import json

import pytest

from knockwatch.utils import config as cfg


def valid_doc(**overrides):
    doc = {
        "interface": "enp3s0",
        "timeout": 5,
        "rules": [
            {"name": "enable ssh", "sequence": [1, 2, 3], "command": "ls -lh"},
            {"name": "disable ssh", "sequence": [3, 5, 6], "command": "du -sh *"},
        ],
    }
    doc.update(overrides)
    return doc


def test_from_dict_builds_rules_in_order():
    config = cfg.from_dict(valid_doc())
    assert config.timeout == 5
    assert config.interface == "enp3s0"
    assert [r.name for r in config.rules] == ["enable ssh", "disable ssh"]
    assert config.rules[1].sequence == (3, 5, 6)
    assert config.rules[1].command == "du -sh *"


def test_defaults_for_optional_keys():
    config = cfg.from_dict({"rules": []})
    assert config.timeout == 5
    assert config.interface is None
    assert config.command_timeout == 30.0
    assert config.queue_maxsize == 5000
    assert config.rules == ()


def test_command_is_optional():
    config = cfg.from_dict({"rules": [{"name": "noop", "sequence": [7]}]})
    assert config.rules[0].command == ""


@pytest.mark.parametrize("doc", [
    [],
    valid_doc(timeout=-1),
    valid_doc(timeout="5"),
    valid_doc(timeout=True),
    valid_doc(rules={"name": "x"}),
    valid_doc(rules=[{"sequence": [1]}]),
    valid_doc(rules=[{"name": "  ", "sequence": [1]}]),
    valid_doc(rules=[{"name": "x", "sequence": []}]),
    valid_doc(rules=[{"name": "x", "sequence": [1, "2"]}]),
    valid_doc(rules=[{"name": "x", "sequence": [70000]}]),
    valid_doc(rules=[{"name": "x", "sequence": [True]}]),
    valid_doc(rules=[{"name": "x", "sequence": [1], "command": ["ls"]}]),
    valid_doc(rules=[{"name": "x", "sequence": [1]}, {"name": "x", "sequence": [2]}]),
    valid_doc(interface=3),
    valid_doc(command_timeout=0),
    valid_doc(queue_maxsize=-5),
])
def test_invalid_documents_raise(doc):
    with pytest.raises(cfg.ConfigError):
        cfg.from_dict(doc)


def test_load_reads_json_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(valid_doc()))
    config = cfg.load(str(path))
    assert len(config.rules) == 2


def test_load_missing_file(tmp_path):
    with pytest.raises(cfg.ConfigError, match="cannot read"):
        cfg.load(str(tmp_path / "missing.json"))


def test_load_invalid_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(cfg.ConfigError, match="not valid JSON"):
        cfg.load(str(path))


def test_config_error_is_value_error():
    assert issubclass(cfg.ConfigError, ValueError)


def test_bundled_config_is_valid():
    config = cfg.load(cfg.default_path())
    assert config.rules
