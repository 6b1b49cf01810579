"""Service configuration: dataclasses and loading from YAML or JSON files."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_CONFIG_SUFFIXES = {".yaml", ".yml", ".json"}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def _parse_duration(value: Any) -> float | None:
    """Turn a duration such as ``"1s"`` or ``"1m30s"`` (or plain seconds) into seconds."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration: {value!r}")
    text = value.strip()
    if not text:
        raise ValueError("invalid duration: empty string")
    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0
    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    if pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return sign * total


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"config section {key!r} must be a mapping")
    return value


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class TransportConfig:
    """Listening settings of one transport; empty values mean defaults."""

    network: str = ""
    addr: str = ""
    timeout: float | None = None

    @classmethod
    def _from_mapping(cls, data: Mapping[str, Any]) -> TransportConfig:
        return cls(
            network=_text(data, "network"),
            addr=_text(data, "addr"),
            timeout=_parse_duration(data.get("timeout")),
        )


@dataclass(frozen=True)
class ServerConfig:
    """HTTP and gRPC listener settings."""

    http: TransportConfig = field(default_factory=TransportConfig)
    grpc: TransportConfig = field(default_factory=TransportConfig)


@dataclass(frozen=True)
class MysqlConfig:
    """Relational database address."""

    addr: str = ""


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection settings."""

    network: str = ""
    addr: str = ""
    password: str = ""
    db: int = 0


@dataclass(frozen=True)
class DataConfig:
    """Settings of the data stores."""

    mysql: MysqlConfig = field(default_factory=MysqlConfig)
    redis: RedisConfig = field(default_factory=RedisConfig)


@dataclass(frozen=True)
class Bootstrap:
    """The whole configuration of a service."""

    server: ServerConfig = field(default_factory=ServerConfig)
    data: DataConfig = field(default_factory=DataConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> Bootstrap:
        """Build a configuration from nested mappings as read from a file."""
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError("configuration must be a mapping")
        server = _section(data, "server")
        store = _section(data, "data")
        redis = _section(store, "redis")
        db_value = redis.get("db", 0)
        try:
            db = int(db_value or 0)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid redis db: {db_value!r}") from exc
        return cls(
            server=ServerConfig(
                http=TransportConfig._from_mapping(_section(server, "http")),
                grpc=TransportConfig._from_mapping(_section(server, "grpc")),
            ),
            data=DataConfig(
                mysql=MysqlConfig(addr=_text(_section(store, "mysql"), "addr")),
                redis=RedisConfig(
                    network=_text(redis, "network"),
                    addr=_text(redis, "addr"),
                    password=_text(redis, "password"),
                    db=db,
                ),
            ),
        )


def _merge(base: dict[str, Any], extra: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in extra.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            _merge(current, value)
        elif isinstance(value, Mapping):
            base[key] = _merge({}, value)
        else:
            base[key] = value
    return base


def _read_file(path: Path) -> Mapping[str, Any]:
    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"cannot parse config file {path}: {exc}") from exc
    if content is None:
        return {}
    if not isinstance(content, Mapping):
        raise ValueError(f"config file {path} does not hold a mapping")
    return content


def load_config(path: str | Path = "./configs") -> Bootstrap:
    """Load a configuration file, or merge every config file in a directory."""
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"config path not found: {source}")
    merged: dict[str, Any] = {}
    if source.is_dir():
        files = sorted(
            entry
            for entry in source.iterdir()
            if entry.is_file()
            and not entry.name.startswith(".")
            and entry.suffix.lower() in _CONFIG_SUFFIXES
        )
        for entry in files:
            _merge(merged, _read_file(entry))
    else:
        _merge(merged, _read_file(source))
    return Bootstrap.from_mapping(merged)