"""The configuration file model and its loader."""

from __future__ import annotations

import dataclasses
import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import yaml

from mosdns.mlog import LogConfig

_SEARCH_EXTS = ("json", "yaml", "yml")
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


@dataclass
class APIConfig:
    """The HTTP API server; an empty address disables it."""

    http: str = ""


@dataclass
class PluginConfig:
    """One plugin entry. An empty tag gets an anonymous tag when loaded."""

    tag: str = ""
    type: str = ""
    args: Any = None


@dataclass
class Config:
    """The whole configuration file."""

    log: LogConfig = field(default_factory=LogConfig)
    include: List[str] = field(default_factory=list)
    plugins: List[PluginConfig] = field(default_factory=list)
    api: APIConfig = field(default_factory=APIConfig)

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        """Decode a parsed document. Unknown keys raise ValueError."""
        return _decode_into(cls(), data if data is not None else {}, error_unused=True)


# Element types of list fields, which cannot be told from an empty default.
_LIST_ITEMS: Dict[type, Dict[str, Any]] = {
    Config: {"include": str, "plugins": PluginConfig},
}


def _weak_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, bytes):
        return value.decode()
    raise ValueError(f"cannot convert {type(value).__name__} to string")


def _weak_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        if value == "":
            return False
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        raise ValueError(f"cannot parse {value!r} as bool")
    raise ValueError(f"cannot convert {type(value).__name__} to bool")


def _weak_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        if value == "":
            return 0
        return int(value, 0)
    raise ValueError(f"cannot convert {type(value).__name__} to int")


def _weak_float(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return 0.0 if value == "" else float(value)
    raise ValueError(f"cannot convert {type(value).__name__} to float")


_SCALARS: Dict[type, Callable[[Any], Any]] = {
    str: _weak_str,
    bool: _weak_bool,
    int: _weak_int,
    float: _weak_float,
}


def _scalar(tp: type, value: Any, path: str) -> Any:
    try:
        return _SCALARS[tp](value)
    except ValueError as exc:
        raise ValueError(f"{path or 'value'}: {exc}") from exc


def _decode_item(tp: Any, value: Any, path: str) -> Any:
    """Convert one value to type tp, converting scalar types weakly."""
    if tp is Any or tp is None:
        return value
    if tp in _SCALARS:
        return _scalar(tp, value, path)
    if isinstance(tp, type) and dataclasses.is_dataclass(tp):
        return _decode_into(tp(), value, path=path)
    return value


def _decode_list(elem_tp: Any, value: Any, path: str) -> list:
    if isinstance(value, Mapping) and not value:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    return [_decode_item(elem_tp, v, f"{path}[{i}]") for i, v in enumerate(items)]


def _decode_field(obj: Any, name: str, value: Any, path: str) -> Any:
    """Decode value for field name of obj, typed by the field's current value."""
    list_items = _LIST_ITEMS.get(type(obj), {})
    if name in list_items:
        return _decode_list(list_items[name], value, path)
    current = getattr(obj, name)
    if dataclasses.is_dataclass(current) and not isinstance(current, type):
        return _decode_into(type(current)(), value, path=path)
    for tp in (bool, int, float, str):
        if isinstance(current, tp):
            return _scalar(tp, value, path)
    if isinstance(current, list):
        return _decode_list(Any, value, path)
    if isinstance(current, dict):
        if not isinstance(value, Mapping):
            raise ValueError(f"{path or 'value'}: expected a mapping")
        return dict(value)
    return value


def _decode_into(obj: Any, data: Any, error_unused: bool = False, path: str = "") -> Any:
    """Set the fields of dataclass instance obj from mapping data."""
    if not isinstance(data, Mapping):
        raise ValueError(f"{path or 'value'}: expected a mapping, got {type(data).__name__}")
    by_name = {f.name.lower(): f.name for f in dataclasses.fields(obj)}
    unused = []
    for key, value in data.items():
        name = by_name.get(str(key).lower())
        if name is None:
            unused.append(str(key))
            continue
        if value is None:
            continue
        sub_path = f"{path}.{name}" if path else name
        setattr(obj, name, _decode_field(obj, name, value, sub_path))
    if unused and error_unused:
        where = f" in {path}" if path else ""
        raise ValueError(f"invalid keys{where}: {', '.join(sorted(unused))}")
    return obj


def _find_config() -> Path:
    for ext in _SEARCH_EXTS:
        candidate = Path(os.path.normpath(os.path.join(".", f"config.{ext}")))
        if candidate.is_file():
            return candidate
    raise FileNotFoundError('config file "config" not found in "."')


def _parse_file(path: Path) -> Any:
    ext = path.suffix.lstrip(".").lower()
    if ext not in _SEARCH_EXTS:
        raise ValueError(f"unsupported config type {ext!r}")
    text = path.read_text(encoding="utf-8")
    try:
        if ext == "json":
            return json.loads(text) if text.strip() else None
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"failed to read config: {exc}") from exc


def load_config(file_path: str = "") -> Tuple[Config, str]:
    """Load a config file and return it with the path used.

    With an empty file_path, "config.json", "config.yaml" or "config.yml" is
    searched for in the current directory.
    """
    path = Path(file_path) if file_path else _find_config()
    data = _parse_file(path)
    try:
        cfg = Config.from_dict(data)
    except ValueError as exc:
        raise ValueError(f"failed to unmarshal config: {exc}") from exc
    return cfg, str(path)