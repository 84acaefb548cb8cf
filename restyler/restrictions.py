"""Resource restrictions applied to restyler containers.

Every restyler runs with networking disabled and all capabilities dropped.
CPU shares and memory are limited by default and can be relaxed or overridden
through environment variables (see ``AppSettings``).
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from restyler.config import AppSettings

DEFAULT_CPU_SHARES = 128

_NATURAL_PATTERN = re.compile(r"[0-9]+")
_NUMBER_PREFIX_PATTERN = re.compile(r"[-0-9]*")


class Suffix(enum.Enum):
    """Unit suffix accepted by ``docker run --memory``."""

    B = "b"
    K = "k"
    M = "m"
    G = "g"


@dataclass(frozen=True)
class Bytes:
    """A byte quantity such as ``512m``."""

    number: int
    suffix: Suffix | None = None

    def to_option(self) -> str:
        """Renders the value as passed to ``--memory``."""

        return f"{self.number}{self.suffix.value if self.suffix is not None else ''}"


DEFAULT_MEMORY = Bytes(number=512, suffix=Suffix.M)


@dataclass(frozen=True)
class Restrictions:
    """CPU and memory limits. ``None`` means no limit for that field."""

    cpu_shares: int | None = None
    memory: Bytes | None = None

    def merge(self, other: Restrictions) -> Restrictions:
        """Combines field-wise, values set on ``other`` winning."""

        return Restrictions(
            cpu_shares=other.cpu_shares if other.cpu_shares is not None else self.cpu_shares,
            memory=other.memory if other.memory is not None else self.memory,
        )


def full_restrictions() -> Restrictions:
    """Returns the default limits."""

    return Restrictions(cpu_shares=DEFAULT_CPU_SHARES, memory=DEFAULT_MEMORY)


def no_restrictions() -> Restrictions:
    """Returns restrictions with neither limit set."""

    return Restrictions()


def from_environment(settings: AppSettings | None = None) -> Restrictions:
    """Builds restrictions from ``UNRESTRICTED`` and ``RESTYLER_*`` overrides.

    Invalid override values raise ``pydantic.ValidationError`` while the
    settings are loaded, naming the field and the offending value.
    """

    if settings is None:
        from restyler.config import AppSettings

        settings = AppSettings()

    baseline = no_restrictions() if settings.unrestricted else full_restrictions()
    overrides = Restrictions(
        cpu_shares=settings.restyler_cpu_shares,
        memory=settings.restyler_memory,
    )
    return baseline.merge(overrides)


def to_container_args(restrictions: Restrictions) -> list[str]:
    """Returns ``docker run`` options for the given restrictions.

    ``--net none`` and ``--cap-drop all`` are always present and come first.
    """

    args = ["--net", "none", "--cap-drop", "all"]
    if restrictions.cpu_shares is not None:
        args.extend(["--cpu-shares", str(restrictions.cpu_shares)])
    if restrictions.memory is not None:
        args.extend(["--memory", restrictions.memory.to_option()])
    return args


def read_nat(text: str) -> int:
    """Parses a natural number.

    Raises:
        ValueError: If ``text`` is not made of digits only.
    """

    if _NATURAL_PATTERN.fullmatch(text) is None:
        raise ValueError(f"Not a valid natural number: {text}")
    return int(text)


def read_suffix(text: str) -> Suffix:
    """Parses a lowercase single-letter memory suffix."""

    for suffix in Suffix:
        if suffix.value == text:
            return suffix
    raise ValueError(f"Invalid suffix {text}, must be one of b, k, m, or g")


def read_bytes(text: str) -> Bytes:
    """Parses ``<number>[b|k|m|g]``.

    A leading ``-`` is consumed as part of the number so that negative values
    fail as invalid naturals instead of being read as a suffix.
    """

    prefix = _NUMBER_PREFIX_PATTERN.match(text)
    number_text = prefix.group(0) if prefix is not None else ""
    suffix_text = text[len(number_text) :]
    number = read_nat(number_text)
    suffix = read_suffix(suffix_text) if suffix_text else None
    return Bytes(number=number, suffix=suffix)
