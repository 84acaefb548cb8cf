"""Loading of a repository's ``.restyled.yaml``.

The file is optional. A missing file enables every restyler in the manifest.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from restyler.models import Restyler

CONFIG_FILE_NAME = ".restyled.yaml"
ALL_RESTYLERS = "*"

_logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """A ``.restyled.yaml`` that cannot be used."""


class InvalidYaml(ConfigError):
    """The file is not valid YAML, or not a valid configuration document."""

    def __init__(self, error: yaml.YAMLError | ValidationError) -> None:
        super().__init__(str(error))
        self.error = error

    def describe(self) -> str:
        """Returns the parser's detailed message, including position marks."""

        return str(self.error)


class InvalidRestylers(ConfigError):
    """The configuration names restylers the manifest does not know."""

    def __init__(self, names: Sequence[str]) -> None:
        super().__init__(", ".join(names))
        self.names = list(names)


class NoRestylers(ConfigError):
    """The configuration enables no restylers."""

    def __init__(self) -> None:
        super().__init__("No Restylers configured")


class RestyledConfig(BaseModel):
    """Parsed ``.restyled.yaml``."""

    enabled: bool = True
    restylers: list[str] = Field(default_factory=lambda: [ALL_RESTYLERS])
    comments: bool = False
    statuses: bool = True


def parse_config(text: str) -> RestyledConfig:
    """Parses configuration text.

    Raises:
        InvalidYaml: If the text is not YAML or has the wrong shape.
    """

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidYaml(exc) from exc
    if document is None:
        return RestyledConfig()
    try:
        return RestyledConfig.model_validate(document)
    except ValidationError as exc:
        raise InvalidYaml(exc) from exc


def load_config(repo_dir: str | Path) -> RestyledConfig:
    """Loads ``.restyled.yaml`` from a checked-out repository, if present."""

    path = Path(repo_dir) / CONFIG_FILE_NAME
    if not path.exists():
        _logger.info("no %s found, using defaults", CONFIG_FILE_NAME)
        return RestyledConfig()
    return parse_config(path.read_text(encoding="utf-8"))


def resolve_restylers(
    config: RestyledConfig, known: Mapping[str, Restyler]
) -> list[Restyler]:
    """Returns the configured restylers in configured order.

    ``*`` expands to every known restyler not named elsewhere in the list, in
    manifest order.

    Raises:
        InvalidRestylers: If any configured name is unknown.
        NoRestylers: If nothing is enabled.
    """

    invalid = [name for name in config.restylers if name != ALL_RESTYLERS and name not in known]
    if invalid:
        raise InvalidRestylers(invalid)

    explicit = {name for name in config.restylers if name != ALL_RESTYLERS}
    resolved: list[Restyler] = []
    for name in config.restylers:
        if name == ALL_RESTYLERS:
            resolved.extend(r for n, r in known.items() if n not in explicit)
        else:
            resolved.append(known[name])
    if not resolved:
        raise NoRestylers()
    return resolved
