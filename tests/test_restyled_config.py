from __future__ import annotations

from pathlib import Path

import pytest

from restyler.models import Restyler
from restyler.restyled_config import (
    InvalidRestylers,
    InvalidYaml,
    NoRestylers,
    RestyledConfig,
    load_config,
    parse_config,
    resolve_restylers,
)


def _known(*names: str) -> dict[str, Restyler]:
    return {name: Restyler(name=name, image=f"restyled/{name}") for name in names}


def test_missing_config_uses_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)
    assert config == RestyledConfig()
    assert config.restylers == ["*"]


def test_load_config_reads_file(tmp_path: Path) -> None:
    (tmp_path / ".restyled.yaml").write_text(
        "restylers:\n  - black\ncomments: true\n", encoding="utf-8"
    )
    config = load_config(tmp_path)
    assert config.restylers == ["black"]
    assert config.comments is True
    assert config.enabled is True


def test_empty_config_uses_defaults() -> None:
    assert parse_config("") == RestyledConfig()


def test_invalid_yaml_is_reported() -> None:
    with pytest.raises(InvalidYaml):
        parse_config("restylers: [black\n")


def test_wrong_shape_is_invalid_yaml() -> None:
    with pytest.raises(InvalidYaml):
        parse_config("restylers: 5\n")


def test_unknown_restylers_are_reported_by_name() -> None:
    config = parse_config("restylers: [black, nope, missing]\n")
    with pytest.raises(InvalidRestylers) as excinfo:
        resolve_restylers(config, _known("black"))
    assert excinfo.value.names == ["nope", "missing"]


def test_no_restylers() -> None:
    config = parse_config("restylers: []\n")
    with pytest.raises(NoRestylers):
        resolve_restylers(config, _known("black"))


def test_wildcard_expands_remaining_in_manifest_order() -> None:
    config = parse_config("restylers: [prettier, '*']\n")
    resolved = resolve_restylers(config, _known("black", "prettier", "shfmt"))
    assert [r.name for r in resolved] == ["prettier", "black", "shfmt"]
