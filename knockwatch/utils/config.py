"""Runtime configuration for the knock daemon.

Config is read from `config.json` at the project root (or any path given on
the command line). Missing optional keys fall back to `_DEFAULTS`; rules are
validated here so the detectors can treat them as trusted.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

_DEFAULTS: Dict[str, Any] = {
    'interface': None,
    'timeout': 5,
    'command_timeout': 30.0,
    'queue_maxsize': 5000,
}

MAX_PORT = 65535


class ConfigError(ValueError):
    """Raised when a configuration document is missing or malformed."""


@dataclass(frozen=True)
class Rule:
    name: str
    sequence: Tuple[int, ...]
    command: str = ''


@dataclass(frozen=True)
class Config:
    timeout: int = _DEFAULTS['timeout']
    rules: Tuple[Rule, ...] = field(default_factory=tuple)
    interface: Optional[str] = _DEFAULTS['interface']
    command_timeout: float = _DEFAULTS['command_timeout']
    queue_maxsize: int = _DEFAULTS['queue_maxsize']


def default_path() -> str:
    """Locate config.json at the project root, falling back to the cwd."""
    root_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), 'config.json')
    if os.path.exists(root_path):
        return root_path
    return 'config.json'


def _is_int(value: Any) -> bool:
    # bool is an int subclass; true/false in JSON are never ports
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_rule(index: int, raw: Any) -> Rule:
    if not isinstance(raw, dict):
        raise ConfigError(f'rule #{index} must be an object')

    name = raw.get('name')
    if not isinstance(name, str) or not name.strip():
        raise ConfigError(f'rule #{index} needs a non-empty name')

    sequence = raw.get('sequence')
    if not isinstance(sequence, list) or not sequence:
        raise ConfigError(f"rule '{name}' needs a non-empty port sequence")
    for port in sequence:
        if not _is_int(port) or not 0 <= port <= MAX_PORT:
            raise ConfigError(f"rule '{name}' has invalid port {port!r}")

    command = raw.get('command', '')
    if not isinstance(command, str):
        raise ConfigError(f"rule '{name}' command must be a string")

    return Rule(name=name, sequence=tuple(sequence), command=command)


def from_dict(data: Any) -> Config:
    """Build a validated Config from a decoded JSON document."""
    if not isinstance(data, dict):
        raise ConfigError('configuration must be a JSON object')

    timeout = data.get('timeout', _DEFAULTS['timeout'])
    if not _is_int(timeout) or timeout < 0:
        raise ConfigError(f'timeout must be a non-negative integer, got {timeout!r}')

    raw_rules = data.get('rules', [])
    if not isinstance(raw_rules, list):
        raise ConfigError('rules must be a list')
    rules = tuple(_parse_rule(i, r) for i, r in enumerate(raw_rules))

    seen = set()
    for rule in rules:
        if rule.name in seen:
            raise ConfigError(f"duplicate rule name '{rule.name}'")
        seen.add(rule.name)

    interface = data.get('interface', _DEFAULTS['interface'])
    if interface is not None and not isinstance(interface, str):
        raise ConfigError('interface must be a string or null')

    command_timeout = data.get('command_timeout', _DEFAULTS['command_timeout'])
    if isinstance(command_timeout, bool) or not isinstance(command_timeout, (int, float)) or command_timeout <= 0:
        raise ConfigError('command_timeout must be a positive number')

    queue_maxsize = data.get('queue_maxsize', _DEFAULTS['queue_maxsize'])
    if not _is_int(queue_maxsize) or queue_maxsize < 0:
        raise ConfigError('queue_maxsize must be a non-negative integer')

    return Config(
        timeout=timeout,
        rules=rules,
        interface=interface or None,
        command_timeout=float(command_timeout),
        queue_maxsize=queue_maxsize,
    )


def load(path: Optional[str] = None) -> Config:
    path = path or default_path()
    try:
        with open(path, 'r') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f'cannot read {path}: {e}') from e
    except json.JSONDecodeError as e:
        raise ConfigError(f'{path} is not valid JSON: {e}') from e
    return from_dict(data)
