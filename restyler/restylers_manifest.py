"""The manifest of known restylers.

A YAML list of restyler definitions, read from a local file or fetched from an
``http(s)`` URL:

    - name: black
      image: restyled/restyler-black:v22.3.0
      command: [black]
      include: ["**/*.py"]
      documentation:
        - https://github.com/psf/black
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
import yaml
from pydantic import TypeAdapter

from restyler.errors import Stage, wrap_errors
from restyler.models import Restyler

_logger = logging.getLogger(__name__)
_RESTYLERS = TypeAdapter(list[Restyler])


def parse_manifest(text: str) -> dict[str, Restyler]:
    """Parses manifest text into restylers keyed by name, in manifest order."""

    restylers = _RESTYLERS.validate_python(yaml.safe_load(text) or [])
    return {restyler.name: restyler for restyler in restylers}


def load_manifest(location: str, *, transport: httpx.BaseTransport | None = None) -> dict[str, Restyler]:
    """Loads the manifest from a path or URL.

    Fetching is classified as an HTTP error, reading and parsing a local file
    as a system error.
    """

    if location.startswith(("http://", "https://")):
        _logger.info("fetching restylers manifest: url=%s", location)
        with wrap_errors(Stage.HTTP):
            with httpx.Client(timeout=httpx.Timeout(30.0), transport=transport) as client:
                resp = client.get(location, follow_redirects=True)
                resp.raise_for_status()
                return parse_manifest(resp.text)

    _logger.info("reading restylers manifest: path=%s", location)
    with wrap_errors(Stage.SYSTEM):
        return parse_manifest(Path(location).read_text(encoding="utf-8"))
