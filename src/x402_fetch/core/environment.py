"""
Settings sources for the x402 fetch client.

A :class:`FetchEnvironment` is a stack of named layers. Lookups walk the stack
from the highest precedence layer down and take the first non-empty value:

    overrides  >  process environment  >  ``.env`` file

Empty strings count as unset at every layer, so ``NETWORK=`` in the shell does
not hide a value from the ``.env`` file.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

__all__ = [
    "EnvLayer",
    "FetchEnvironment",
    "build_environment",
    "parse_env_file",
]

_ASSIGNMENT = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")


def _parse_value(raw: str) -> str:
    if raw[:1] in ("'", '"'):
        quote = raw[0]
        end = raw.find(quote, 1)
        if end != -1:
            return raw[1:end]
    # Unquoted: a " #" starts a trailing comment.
    return raw.split(" #", 1)[0].rstrip()


def parse_env_file(path: Path) -> Dict[str, str]:
    """
    Read ``KEY=VALUE`` assignments from a dotenv file.

    Understands ``export`` prefixes, single or double quotes and trailing
    comments on unquoted values. Lines that are not assignments are ignored.
    A missing file yields ``{}``.
    """
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return {}

    values: Dict[str, str] = {}
    for line in lines:
        match = _ASSIGNMENT.match(line.strip())
        if match is None:
            continue
        key, raw = match.groups()
        values[key] = _parse_value(raw)
    return values


@dataclass(frozen=True)
class EnvLayer:
    source: str
    values: Mapping[str, str]


class FetchEnvironment:
    """Layered settings, lowest precedence first."""

    def __init__(self, layers: Sequence[EnvLayer] = ()) -> None:
        self.layers: Tuple[EnvLayer, ...] = tuple(layers)

    def _lookup(self, key: str) -> Iterator[Tuple[str, str]]:
        for layer in reversed(self.layers):
            value = layer.values.get(key)
            if value:
                yield layer.source, value

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        for _, value in self._lookup(key):
            return value
        return default

    def origin(self, key: str) -> Optional[str]:
        """Name of the layer that supplies ``key``, or ``None`` when unset."""
        for source, _ in self._lookup(key):
            return source
        return None

    @property
    def variables(self) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        for layer in self.layers:
            merged.update({key: value for key, value in layer.values.items() if value})
        return merged


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> FetchEnvironment:
    """
    Stack the ``.env`` file, ``base`` (default :data:`os.environ`) and
    ``overrides``. ``env_file=None`` leaves the file layer out.
    """
    layers = []
    if env_file is not None:
        layers.append(EnvLayer(env_file, parse_env_file(Path(env_file))))
    layers.append(EnvLayer("environment", os.environ if base is None else base))
    if overrides:
        layers.append(EnvLayer("overrides", overrides))
    return FetchEnvironment(layers)
