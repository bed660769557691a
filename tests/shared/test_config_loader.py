"""Tests for shared configuration loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import BaseModel, ValidationError

from packages.pipeline_shared.config import (
    ENV_PREFIX,
    PipelineSettings,
    config_file,
    load_settings,
    resolve_component_settings,
)


class _ExampleSettings(BaseModel):
    retries: int = 1
    label: str = "default"


@pytest.fixture(autouse=True)
def _clean_pipeline_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith(ENV_PREFIX):
            monkeypatch.delenv(name)


def test_load_settings_uses_pipeline_precedence_cascade(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """CLI params should override env, env should override YAML, then defaults."""
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text(
        "\n".join(
            [
                "logging:",
                "  level: WARNING",
                "  environment: staging",
                "components:",
                "  service:",
                "    example:",
                "      retries: 7",
                "      label: from-yaml",
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("PIPELINE_LOGGING__LEVEL", "ERROR")
    monkeypatch.setenv("PIPELINE_LOGGING__JSON_OUTPUT", "false")
    monkeypatch.setenv("PIPELINE_COMPONENTS__SERVICE__EXAMPLE__RETRIES", "9")

    settings = load_settings(
        cli_params={"logging": {"level": "DEBUG"}},
        config_path=config_path,
    )
    example = resolve_component_settings(
        settings=settings,
        component_id="service_example",
        model=_ExampleSettings,
    )

    assert settings.logging.level == "DEBUG"
    assert settings.logging.json_output is False
    assert settings.logging.environment == "staging"
    assert example.retries == 9
    assert example.label == "from-yaml"


def test_load_settings_uses_model_defaults_when_sources_missing(tmp_path: Path) -> None:
    """Settings should fall back to model defaults when env and YAML are absent."""
    settings = load_settings(config_path=tmp_path / "pipeline.yaml")
    example = resolve_component_settings(
        settings=settings,
        component_id="service_example",
        model=_ExampleSettings,
    )

    assert settings.logging.service == "pipeline"
    assert settings.logging.level == "INFO"
    assert settings.logging.json_output is True
    assert example == _ExampleSettings()


def test_env_values_are_coerced_by_the_models(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Env strings should validate into the typed fields they address."""
    monkeypatch.setenv("PIPELINE_LOGGING__JSON_OUTPUT", "0")
    monkeypatch.setenv("PIPELINE_LOGGING__SERVICE", "materializer")
    monkeypatch.setenv("PIPELINE_COMPONENTS__SERVICE__EXAMPLE__RETRIES", "12")
    monkeypatch.setenv("OTHER_LOGGING__LEVEL", "DEBUG")

    settings = load_settings(config_path=tmp_path / "pipeline.yaml")
    example = resolve_component_settings(
        settings=settings,
        component_id="service_example",
        model=_ExampleSettings,
    )

    assert settings.logging.json_output is False
    assert settings.logging.service == "materializer"
    assert settings.logging.level == "INFO"
    assert example.retries == 12


def test_config_file_scope_applies_to_direct_construction(tmp_path: Path) -> None:
    """Building PipelineSettings inside config_file should read that YAML file."""
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text("logging:\n  environment: prod\n", encoding="utf-8")

    with config_file(config_path):
        inside = PipelineSettings()
    outside = load_settings(config_path=tmp_path / "missing.yaml")

    assert inside.logging.environment == "prod"
    assert outside.logging.environment == "dev"


def test_load_settings_rejects_non_mapping_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "pipeline.yaml"
    config_path.write_text("- not\n- a mapping\n", encoding="utf-8")

    with pytest.raises(ValueError, match="top-level mapping"):
        load_settings(config_path=config_path)


def test_load_settings_rejects_flat_component_keys(tmp_path: Path) -> None:
    """Component settings must be grouped under their kind namespace."""
    with pytest.raises(ValidationError, match="components.service.example"):
        load_settings(
            cli_params={"components": {"service_example": {"retries": 2}}},
            config_path=tmp_path / "pipeline.yaml",
        )


def test_resolve_component_settings_requires_mapping(tmp_path: Path) -> None:
    settings = load_settings(
        cli_params={"components": {"service": {"example": "oops"}}},
        config_path=tmp_path / "pipeline.yaml",
    )

    with pytest.raises(TypeError, match="components.service.example"):
        resolve_component_settings(
            settings=settings,
            component_id="service_example",
            model=_ExampleSettings,
        )
