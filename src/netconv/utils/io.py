from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml


def ensure_dir(path: str | Path) -> Path:
    out = Path(path)
    out.mkdir(parents=True, exist_ok=True)
    return out


def _read_mapping(path: str | Path, parse, kind: str) -> Dict[str, Any]:
    text = Path(path).read_text(encoding="utf-8")
    data = parse(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level of a {kind} file must be a mapping, got {type(data).__name__}")
    return data


def load_yaml(path: str | Path) -> Dict[str, Any]:
    try:
        return _read_mapping(path, yaml.safe_load, "YAML")
    except yaml.YAMLError as exc:
        raise ValueError(f"{path}: malformed YAML: {exc}") from exc


def load_json(path: str | Path) -> Dict[str, Any]:
    return _read_mapping(path, json.loads, "JSON")


def dump_json(path: str | Path, obj: Any) -> Path:
    """Write ``obj`` as sorted, indented JSON; parent directories are created."""
    out = Path(path)
    ensure_dir(out.parent)
    out.write_text(json.dumps(obj, ensure_ascii=False, indent=2, sort_keys=True, default=str) + "\n", encoding="utf-8")
    return out


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a new mapping with ``override`` laid over ``base``; nested mappings merge key by key."""
    merged: Dict[str, Any] = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged
