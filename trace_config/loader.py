"""
Configuration Loader (``trace_config.loader``).

Responsibility
--------------
Loads the packaged ``defaults.yaml``, merges an optional operator YAML
file over it, applies environment overrides and parses the result into a
frozen ``LabelSettings``.

Invariants enforced
-------------------
* All parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; unknown keys are rejected rather than ignored.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  effective settings so a printed label can be tied to the configuration
  that produced it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Null or blank ``registry_number`` and ``default_conservation`` fall back
  to the label defaults; a blank ``printer_device`` is a ``ValueError``.
* Missing required keys  -> ``KeyError``.
* Wrong value types / unknown keys  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from trace_config.schema import LabelSettings
from trace_labels.content import DEFAULT_CONSERVATION
from trace_labels.encoder import LabelHeader
from trace_labels.layout import DEFAULT_REGISTRY_NUMBER, LayoutConstants

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"

ENV_REGISTRY = "REGISTRO_SANITARIO"
ENV_PRINTER_DEVICE = "TRACE_PRINTER_DEVICE"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level, got {type(data).__name__}")
    return data


def merge_settings(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursive merge; nested mappings merge, everything else replaces."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_environment(data: Mapping[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    """Environment overrides; blank values are ignored."""
    result = dict(data)
    registry = environ.get(ENV_REGISTRY, "").strip()
    if registry:
        result["registry_number"] = registry
    device = environ.get(ENV_PRINTER_DEVICE, "").strip()
    if device:
        result["printer_device"] = device
    return result


def _parse_dataclass(cls: type, section: str, data: Any) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise ValueError(f"'{section}' must be a mapping, got {type(data).__name__}")
    known = {f.name: f for f in fields(cls)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ValueError(f"Unknown keys in '{section}': {', '.join(unknown)}")

    values = {}
    for key, value in data.items():
        default = known[key].default
        if isinstance(default, float):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"'{section}.{key}' must be a number, got {value!r}")
            value = float(value)
        elif isinstance(default, int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"'{section}.{key}' must be an integer, got {value!r}")
        elif value is not None:
            value = str(value)
        values[key] = value
    return cls(**values)


def parse_header(data: Any) -> LabelHeader:
    header = _parse_dataclass(LabelHeader, "header", data)
    if header.copies < 1:
        raise ValueError(f"'header.copies' must be at least 1, got {header.copies}")
    return header


def parse_layout(data: Any) -> LayoutConstants:
    return _parse_dataclass(LayoutConstants, "layout", data)


def _text_or_default(value: Any, default: str) -> str:
    text = "" if value is None else str(value).strip()
    return text or default


def parse_settings(data: Mapping[str, Any], source: str = "") -> LabelSettings:
    """
    Parse a merged settings dict into ``LabelSettings``.

    Raises:
        KeyError: if a required top-level key is missing.
        ValueError: for malformed values.
    """
    days = data["default_days_valid"]
    if isinstance(days, bool) or not isinstance(days, int):
        raise ValueError(f"'default_days_valid' must be an integer, got {days!r}")
    printer_device = _text_or_default(data["printer_device"], "")
    if not printer_device:
        raise ValueError("'printer_device' must not be blank")

    return LabelSettings(
        registry_number=_text_or_default(data["registry_number"], DEFAULT_REGISTRY_NUMBER),
        default_days_valid=days,
        default_conservation=_text_or_default(
            data["default_conservation"], DEFAULT_CONSERVATION
        ),
        printer_device=printer_device,
        header=parse_header(data.get("header")),
        layout=parse_layout(data.get("layout")),
        source=source,
        checksum=compute_checksum(dict(data)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization (deterministic)."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
