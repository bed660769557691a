"""Settings entrypoint for pipeline actors.

Sources are merged lowest to highest precedence:

1. Built-in model defaults
2. ``~/.config/pipeline/pipeline.yaml`` (or an explicit ``config_path``)
3. ``PIPELINE_*`` environment variables, ``__`` separating nested keys
4. CLI params

The layering itself is ``PipelineSettings.settings_customise_sources``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml

from .models import DEFAULT_CONFIG_PATH, PipelineSettings, config_file


def load_settings(
    *,
    cli_params: Mapping[str, Any] | None = None,
    config_path: str | Path | None = None,
) -> PipelineSettings:
    """Return validated root settings for the merged configuration layers.

    Raises ``ValueError`` when the config file is not a YAML mapping and
    ``pydantic.ValidationError`` when a merged value is invalid.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    _check_config_file(path)
    with config_file(path):
        return PipelineSettings(**dict(cli_params or {}))


def _check_config_file(path: Path) -> None:
    """Reject config files that exist but do not hold a top-level mapping."""
    if not path.is_file():
        return
    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Config file is not valid YAML: {path}: {exc}") from exc
    if parsed is not None and not isinstance(parsed, Mapping):
        raise ValueError(f"Config file must contain a top-level mapping: {path}")
