"""
trace_config -- single public entrypoint for label configuration.

Responsibility:
    Provides the ONLY way to obtain label settings at runtime through
    ``get_active_config()``.  No other component reads the YAML files or
    the ``REGISTRO_SANITARIO`` / ``TRACE_PRINTER_DEVICE`` environment
    variables directly.

Resolution order (later wins):
    1. ``trace_config/defaults.yaml`` shipped with the package.
    2. The operator file passed as ``config_path``.
    3. Environment overrides.

Failure modes:
    - ``FileNotFoundError`` -- ``config_path`` does not exist.
    - ``KeyError`` / ``ValueError`` -- schema violations.

Audit relevance:
    Every call logs ``label_config_loaded`` with the settings checksum, so
    a printed label can be tied back to the configuration that produced it.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from trace_config.loader import (
    DEFAULTS_PATH,
    apply_environment,
    load_yaml_file,
    merge_settings,
    parse_settings,
)
from trace_config.schema import LabelSettings
from trace_kernel.logging_config import get_logger

_logger = get_logger("config")

__all__ = ["LabelSettings", "get_active_config"]


def get_active_config(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LabelSettings:
    """
    Resolve the effective label settings.

    Args:
        config_path: Optional operator YAML merged over the defaults.
        environ: Environment mapping (``os.environ`` by default).

    Returns:
        Frozen ``LabelSettings`` carrying the checksum of the merged data.
    """
    data = load_yaml_file(DEFAULTS_PATH)
    source = str(DEFAULTS_PATH)
    if config_path is not None:
        data = merge_settings(data, load_yaml_file(Path(config_path)))
        source = str(config_path)
    data = apply_environment(data, os.environ if environ is None else environ)

    settings = parse_settings(data, source=source)
    _logger.info(
        "label_config_loaded",
        extra={
            "config_source": settings.source,
            "checksum": settings.checksum,
            "printer_device": settings.printer_device,
        },
    )
    return settings
