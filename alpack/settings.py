from __future__ import annotations

import dataclasses
import json
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import tomli_w
import yaml

from .errors import ConfigError
from .lib.env import DEFAULT_MIRROR, home_dir
from .render import render_table

logger = logging.getLogger(__name__)

SANDBOX_HANDLERS = ("proot", "bwrap")
RELEASE_CHANNELS = ("latest-stable", "edge")

OUTPUT_DIR_PLACEHOLDER = "Current Directory or Home FallBack"

_RED = "\x1b[1;31m"
_GREEN = "\x1b[1;32m"
_RESET = "\x1b[0m"


def default_config_path() -> Path:
    env_path = os.environ.get("ALPACK_CONFIG")
    if env_path:
        return Path(env_path)
    return home_dir() / ".config" / "ALPack" / "config.toml"


def _defaults() -> Dict[str, str]:
    home = home_dir()
    return {
        "default_mirror": DEFAULT_MIRROR,
        "cache_dir": str(home / ".cache" / "ALPack"),
        "rootfs_dir": str(home / ".ALPack"),
        "cmd_rootfs": "proot",
        "release": "latest-stable",
        "output_dir": "",
    }


_CHOICES = {
    "cmd_rootfs": SANDBOX_HANDLERS,
    "release": RELEASE_CHANNELS,
}


@dataclass
class Settings:
    default_mirror: str
    cache_dir: str
    rootfs_dir: str
    cmd_rootfs: str
    release: str
    output_dir: str

    @classmethod
    def defaults(cls) -> "Settings":
        return cls(**_defaults())

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any]) -> "Settings":
        """Build settings from a parsed document, field by field.

        Missing keys, non-string values and out-of-range enum values fall back
        to the field's default; unknown keys are ignored.
        """

        values = _defaults()
        for key in values:
            if key not in raw:
                continue
            val = raw[key]
            if not isinstance(val, str):
                logger.warning("Config key %s has invalid value %r; using default %r", key, val, values[key])
                continue
            choices = _CHOICES.get(key)
            if choices and val not in choices:
                logger.warning(
                    "Config key %s must be one of %s, got %r; using default %r",
                    key,
                    "|".join(choices),
                    val,
                    values[key],
                )
                continue
            values[key] = val

        unknown = sorted(str(k) for k in raw if k not in values)
        if unknown:
            logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**values)

    def to_mapping(self) -> Dict[str, str]:
        return dataclasses.asdict(self)

    def resolved_rootfs(self) -> str:
        return os.environ.get("ALPACK_ROOTFS") or self.rootfs_dir

    def resolved_cache_dir(self) -> str:
        return os.environ.get("ALPACK_CACHE") or self.cache_dir


def _detect_format(path: Path) -> str:
    ext = path.suffix.lower().lstrip(".")
    if ext in {"toml", "json", "yaml", "yml"}:
        return ext
    # Default to TOML for unknown extensions.
    return "toml"


def _parse(text: str, fmt: str) -> Any:
    if fmt == "json":
        return json.loads(text)
    if fmt in {"yaml", "yml"}:
        return yaml.safe_load(text)
    return tomllib.loads(text)


def _dump(data: Dict[str, str], fmt: str) -> str:
    if fmt == "json":
        return json.dumps(data, indent=2) + "\n"
    if fmt in {"yaml", "yml"}:
        return yaml.safe_dump(data, sort_keys=False)
    return tomli_w.dumps(data)


class ConfigStore:
    """Persisted settings: defaults, then the config file, then environment."""

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self.path = Path(path) if path is not None else default_config_path()
        self.fmt = _detect_format(self.path)

    def _read_document(self) -> Tuple[Optional[Dict[str, Any]], str]:
        """Read and parse the file; returns (document, problem).

        ``problem`` is empty when the document is a usable mapping.
        """

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            return None, f"Failed to read config file {self.path}: {e}"
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            return None, f"Config file {self.path} is not valid UTF-8 ({e})"
        if not text.strip():
            return None, f"Config file {self.path} is empty"
        try:
            data = _parse(text, self.fmt)
        except (ValueError, yaml.YAMLError) as e:
            return None, f"Failed to parse config file {self.path} ({e})"
        if not isinstance(data, dict):
            return None, f"Config file {self.path} must contain a table/mapping"
        return data, ""

    def read_raw(self) -> Optional[Dict[str, Any]]:
        """Return the parsed on-disk document, or None if it is unusable."""

        data, _ = self._read_document()
        return data

    def load_or_create(self) -> Settings:
        if not self.path.exists():
            logger.warning("Config file not found, creating a new one at %s", self.path)
            return self._create()

        data, problem = self._read_document()
        if data is None:
            logger.warning("%s. Using default settings.", problem)
            return self._create()
        return Settings.from_mapping(data)

    def _create(self) -> Settings:
        settings = Settings.defaults()
        try:
            self.save(settings)
        except ConfigError as e:
            logger.warning("Failed to write default config file: %s", e)
        return settings

    def save(self, settings: Settings) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(_dump(settings.to_mapping(), self.fmt), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot write config file {self.path}: {e}") from e
        logger.info("Saved config to %s", self.path)

    def diff_rows(self, settings: Settings, *, color: bool = False) -> List[Tuple[str, str]]:
        """Compare ``settings`` with the on-disk copy, one row per field.

        Differing fields render as ``old -> new``. Fields the disk copy does
        not have (or no disk copy at all) render as the new value only.
        """

        disk = self.read_raw()
        rows: List[Tuple[str, str]] = []
        for key, new_val in settings.to_mapping().items():
            if key == "output_dir" and not new_val:
                new_val = OUTPUT_DIR_PLACEHOLDER

            if disk is None or key not in disk:
                rows.append((key, new_val))
                continue

            old_val = str(disk[key])
            if key == "output_dir" and not old_val:
                old_val = OUTPUT_DIR_PLACEHOLDER

            if old_val == new_val:
                rows.append((key, new_val))
            elif color:
                rows.append((key, f"{_RED}{old_val}{_RESET} -> {_GREEN}{new_val}{_RESET}"))
            else:
                rows.append((key, f"{old_val} -> {new_val}"))
        return rows

    def diff_report(self, settings: Settings, *, color: bool = False) -> str:
        return render_table(self.diff_rows(settings, color=color))
