"""Persisted output preferences.

Config file location: ~/.config/bsky-archive/config.toml

Schema:
    [output]
    media = "inline"      # none | inline | download
    format = "rich"       # minimal | rich
    output_dir = "."

    [api]
    base_url = "https://public.api.bsky.app/xrpc"
    timeout = 30.0
"""

import tomllib
from dataclasses import dataclass
from pathlib import Path

import tomli_w

from .client import DEFAULT_API_URL
from .errors import ConfigError
from .markdown import FORMAT_OPTIONS, FORMAT_RICH, MEDIA_INLINE, MEDIA_OPTIONS

CONFIG_DIR = Path.home() / ".config" / "bsky-archive"
CONFIG_FILE = CONFIG_DIR / "config.toml"


@dataclass
class AppConfig:
    media: str = MEDIA_INLINE
    format: str = FORMAT_RICH
    output_dir: Path = Path(".")
    base_url: str = DEFAULT_API_URL
    timeout: float = 30.0


def load_config(config_path: Path = CONFIG_FILE) -> AppConfig:
    """Load preferences, falling back to defaults when no file exists."""
    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    output_data = data.get("output", {})
    api_data = data.get("api", {})

    media = output_data.get("media", MEDIA_INLINE)
    if media not in MEDIA_OPTIONS:
        raise ConfigError(
            f"Invalid output.media {media!r}, expected one of: "
            + ", ".join(MEDIA_OPTIONS)
        )

    fmt = output_data.get("format", FORMAT_RICH)
    if fmt not in FORMAT_OPTIONS:
        raise ConfigError(
            f"Invalid output.format {fmt!r}, expected one of: "
            + ", ".join(FORMAT_OPTIONS)
        )

    try:
        timeout = float(api_data.get("timeout", 30.0))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid api.timeout: {e}") from e

    return AppConfig(
        media=media,
        format=fmt,
        output_dir=Path(output_data.get("output_dir", ".")),
        base_url=api_data.get("base_url", DEFAULT_API_URL),
        timeout=timeout,
    )


def save_config(config: AppConfig, config_path: Path = CONFIG_FILE) -> None:
    """Write preferences to the TOML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "output": {
            "media": config.media,
            "format": config.format,
            "output_dir": str(config.output_dir),
        },
        "api": {
            "base_url": config.base_url,
            "timeout": config.timeout,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)


def config_exists(config_path: Path = CONFIG_FILE) -> bool:
    """Check if config file exists."""
    return config_path.exists()
