"""
Configuration management for onmind stores.

The configuration is stored as a TOML file in the store directory.
It specifies the storage backend, the legacy category cleanup rules,
and how URL metadata is fetched.
"""

import os
import tomllib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import tomli_w


CONFIG_FILENAME = "onmind.toml"
CONFIG_VERSION = 1

DEFAULT_STORE_DIR = ".onmind"

DEFAULT_OEMBED_URL = "https://www.youtube.com/oembed"
DEFAULT_SCRAPE_URL = "https://api.microlink.io"


def get_store_path(store_path: Optional[Path] = None) -> Path:
    """Resolve the store directory: argument, then ONMIND_STORE_PATH, then ~/.onmind."""
    if store_path is not None:
        return Path(store_path).expanduser()
    env = os.environ.get("ONMIND_STORE_PATH")
    if env:
        return Path(env).expanduser()
    return Path.home() / DEFAULT_STORE_DIR


@dataclass
class CategoryConfig:
    """Deprecated-category matchers swept up by category deletion."""
    deprecated: list[str] = field(default_factory=lambda: ["Code Vault"])
    deprecated_patterns: list[str] = field(default_factory=lambda: [r"^\(\d+\)$"])


@dataclass
class MetadataConfig:
    """How video and page metadata is looked up."""
    timeout: float = 10.0
    oembed_url: str = DEFAULT_OEMBED_URL
    # Empty string: scrape the page's Open Graph tags directly
    scrape_url: str = DEFAULT_SCRAPE_URL


@dataclass
class YouTubeConfig:
    category: str = "YouTube"
    auto_add_channel_as_tag: bool = False


@dataclass
class StoreConfig:
    """Complete store configuration."""
    path: Path
    version: int = CONFIG_VERSION
    created: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    backend: str = "local"
    # Fan-out writes in a single transaction when the store supports it
    atomic_fanout: bool = False

    categories: CategoryConfig = field(default_factory=CategoryConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    youtube: YouTubeConfig = field(default_factory=YouTubeConfig)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    @property
    def database_path(self) -> Path:
        return self.path / "entries.db"

    @property
    def session_path(self) -> Path:
        return self.path / "session.json"

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()


def load_config(store_path: Path) -> StoreConfig:
    """
    Load configuration from a store directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        ValueError: If config is invalid
    """
    config_path = store_path / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    store = data.get("store", {})
    version = store.get("version", 1)
    if version > CONFIG_VERSION:
        raise ValueError(f"Config version {version} is newer than supported ({CONFIG_VERSION})")

    cats = data.get("categories", {})
    meta = data.get("metadata", {})
    yt = data.get("youtube", {})
    fanout = data.get("fanout", {})

    defaults = CategoryConfig()
    return StoreConfig(
        path=store_path,
        version=version,
        created=store.get("created", ""),
        backend=store.get("backend", "local"),
        atomic_fanout=bool(fanout.get("atomic", False)),
        categories=CategoryConfig(
            deprecated=list(cats.get("deprecated", defaults.deprecated)),
            deprecated_patterns=list(cats.get("deprecated_patterns", defaults.deprecated_patterns)),
        ),
        metadata=MetadataConfig(
            timeout=float(meta.get("timeout", 10.0)),
            oembed_url=meta.get("oembed_url", DEFAULT_OEMBED_URL),
            scrape_url=meta.get("scrape_url", DEFAULT_SCRAPE_URL),
        ),
        youtube=YouTubeConfig(
            category=yt.get("category", "YouTube"),
            auto_add_channel_as_tag=bool(yt.get("auto_add_channel_as_tag", False)),
        ),
    )


def save_config(config: StoreConfig) -> None:
    """
    Save configuration to the store directory.

    Creates the directory if it doesn't exist.
    """
    config.path.mkdir(parents=True, exist_ok=True)

    data = {
        "store": {
            "version": config.version,
            "created": config.created,
            "backend": config.backend,
        },
        "categories": {
            "deprecated": config.categories.deprecated,
            "deprecated_patterns": config.categories.deprecated_patterns,
        },
        "metadata": {
            "timeout": config.metadata.timeout,
            "oembed_url": config.metadata.oembed_url,
            "scrape_url": config.metadata.scrape_url,
        },
        "youtube": {
            "category": config.youtube.category,
            "auto_add_channel_as_tag": config.youtube.auto_add_channel_as_tag,
        },
        "fanout": {
            "atomic": config.atomic_fanout,
        },
    }

    with open(config.config_path, "wb") as f:
        tomli_w.dump(data, f)


def load_or_create_config(store_path: Path) -> StoreConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    config_path = store_path / CONFIG_FILENAME

    if config_path.exists():
        return load_config(store_path)
    config = StoreConfig(path=store_path)
    save_config(config)
    return config
