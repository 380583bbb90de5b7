"""Load the linter options from TOML settings files.

Options can be stored in a dedicated ``.sqlstyle.toml`` file::

    [sqlstyle]
    max_identifier_length = 40
    keyword_case = "upper"
    enforce_river_alignment = false
    enabled_rules = ["keyword_casing", "identifier_naming"]

or in the ``[tool.sqlstyle]`` table of the ``pyproject.toml`` of a project.
All the keys are optional, missing ones take the defaults
of :class:`sqlstyle.lint.options.LintOptions`.
"""

import logging
import os
import tomllib
from typing import Any

from .lint.errors import SQLStyleError
from .lint.options import KEYWORD_CASES, LintOptions
from .lint.rules import RULES

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".sqlstyle.toml"
PYPROJECT_FILENAME = "pyproject.toml"

#: The accepted settings and the type of their value.
OPTION_TYPES = {
    "max_identifier_length": int,
    "enforce_river_alignment": bool,
    "keyword_case": str,
    "enabled_rules": list,
}


def load_options(path: str) -> LintOptions:
    """Read the :class:`LintOptions` from a TOML file.

    The options are read from the ``[sqlstyle]`` table or,
    for ``pyproject.toml`` files, from the ``[tool.sqlstyle]`` table.
    A file without any of them gives the default options.

    Raises :class:`ConfigError` when the file can't be read
    or the settings in it are not valid.
    """
    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"Unable to read {path}: {e.strerror}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    settings = document.get("sqlstyle")
    if settings is None:
        settings = document.get("tool", {}).get("sqlstyle", {})
    logger.debug("Loaded settings %s from %s", settings, path)
    return options_from_dict(settings, source=path)


def options_from_dict(settings: dict[str, Any], source: str = "settings") -> LintOptions:
    """Validate a dictionary of settings and build the :class:`LintOptions`."""
    if not isinstance(settings, dict):
        raise ConfigError(f"{source}: sqlstyle settings must be a table")

    unknown = sorted(set(settings) - set(OPTION_TYPES))
    if unknown:
        raise ConfigError(f"{source}: unknown settings {', '.join(unknown)}")

    for key, value in settings.items():
        expected = OPTION_TYPES[key]
        # bool is a subclass of int, but true is not a valid length.
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise ConfigError(
                f"{source}: {key} must be of type {expected.__name__}, "
                f"got {type(value).__name__}"
            )

    if settings.get("keyword_case", "upper") not in KEYWORD_CASES:
        raise ConfigError(
            f"{source}: keyword_case must be one of {', '.join(KEYWORD_CASES)}"
        )

    enabled = settings.get("enabled_rules")
    if enabled is not None:
        unknown_rules = sorted(str(r) for r in enabled if r not in RULES)
        if unknown_rules:
            raise ConfigError(f"{source}: unknown rules {', '.join(unknown_rules)}")
        settings = dict(settings, enabled_rules=frozenset(enabled))

    try:
        return LintOptions(**settings)
    except ValueError as e:
        raise ConfigError(f"{source}: {e}") from e


def find_config(start_dir: str = ".") -> str | None:
    """Look for a settings file in a directory and its parents.

    In each directory a ``.sqlstyle.toml`` file is preferred,
    a ``pyproject.toml`` is only used if it has a ``[tool.sqlstyle]`` table.

    :param start_dir: The directory the search starts from.
    :returns: The path of the settings file, or ``None`` if there is none.
    """
    directory = os.path.abspath(start_dir)
    while True:
        candidate = os.path.join(directory, CONFIG_FILENAME)
        if os.path.isfile(candidate):
            return candidate

        candidate = os.path.join(directory, PYPROJECT_FILENAME)
        if os.path.isfile(candidate) and _has_tool_section(candidate):
            return candidate

        parent = os.path.dirname(directory)
        if parent == directory:
            return None
        directory = parent


def _has_tool_section(path: str) -> bool:
    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        logger.debug("Ignoring unreadable %s", path)
        return False
    return "sqlstyle" in document.get("tool", {})


class ConfigError(SQLStyleError):
    """An exception raised when the settings are not valid."""

    pass
