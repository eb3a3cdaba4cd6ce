"""Configuration loading from pyproject.toml."""

import tomllib
from dataclasses import dataclass
from pathlib import Path

from minidsl._model import DEFAULT_MAX_UNROLL


class ConfigError(Exception):
    """Error in minidsl configuration."""


@dataclass(slots=True, frozen=True)
class MinidslConfig:
    """Defaults for CLI options, loaded from ``[tool.minidsl]``.

    Command-line flags take precedence over these values.
    """

    relabel: bool = True
    dedupe: bool = False
    max_unroll: int = DEFAULT_MAX_UNROLL
    seed: int | None = None


def find_pyproject_toml(start_dir: Path | None = None) -> Path | None:
    """Find pyproject.toml by walking up from start_dir.

    Args:
        start_dir: Starting directory. Defaults to current working directory.

    Returns:
        Path to pyproject.toml if found, None otherwise.

    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        candidate = current / "pyproject.toml"
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            # Reached filesystem root
            return None
        current = parent


def _get_bool(section: dict[str, object], key: str, *, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        msg = f"Invalid [tool.minidsl].{key}: expected boolean"
        raise ConfigError(msg)
    return value


def _get_int(section: dict[str, object], key: str) -> int | None:
    value = section.get(key)
    if value is None:
        return None
    # bool is a subclass of int, but `seed = true` is a mistake
    if not isinstance(value, int) or isinstance(value, bool):
        msg = f"Invalid [tool.minidsl].{key}: expected integer"
        raise ConfigError(msg)
    return value


def load_config(pyproject_path: Path) -> MinidslConfig:
    """Load and validate [tool.minidsl] config from pyproject.toml.

    Args:
        pyproject_path: Path to pyproject.toml

    Returns:
        Parsed MinidslConfig

    Raises:
        ConfigError: If the configuration is invalid

    """
    with pyproject_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {pyproject_path}: {e}"
            raise ConfigError(msg) from e

    tool_section = data.get("tool", {})
    section = tool_section.get("minidsl", {})

    if not section:
        return MinidslConfig()

    unknown = sorted(set(section) - {"relabel", "dedupe", "max_unroll", "seed"})
    if unknown:
        msg = f"Unknown key(s) in [tool.minidsl]: {', '.join(unknown)}"
        raise ConfigError(msg)

    max_unroll = _get_int(section, "max_unroll")
    if max_unroll is not None and max_unroll <= 0:
        msg = "Invalid [tool.minidsl].max_unroll: expected a positive integer"
        raise ConfigError(msg)

    return MinidslConfig(
        relabel=_get_bool(section, "relabel", default=True),
        dedupe=_get_bool(section, "dedupe", default=False),
        max_unroll=DEFAULT_MAX_UNROLL if max_unroll is None else max_unroll,
        seed=_get_int(section, "seed"),
    )


def get_config() -> MinidslConfig:
    """Get config from pyproject.toml in current directory or parents.

    Returns:
        MinidslConfig (defaults if no pyproject.toml or no [tool.minidsl] section)

    """
    pyproject_path = find_pyproject_toml()
    if pyproject_path is None:
        return MinidslConfig()
    return load_config(pyproject_path)
