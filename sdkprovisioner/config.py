import json
import os
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import toml

from .cli_logger import logger
from .errors import ConfigError

CONFIG_FILE = "sdkprovisioner.toml"

SDK_STORAGE_BASE_URL_KEY = "SDK_STORAGE_BASE_URL"
DEBIAN_FLAVOR_KEY = "DEBIAN_FLAVOR"
DYNAMIC_INSTALL_ROOT_DIR_KEY = "DYNAMIC_INSTALL_ROOT_DIR"
ENABLE_DYNAMIC_INSTALL_KEY = "ENABLE_DYNAMIC_INSTALL"
SDK_LINK_BASE_DIR_KEY = "SDK_LINK_BASE_DIR"
SDK_STORAGE_TIMEOUT_KEY = "SDK_STORAGE_TIMEOUT"
SDK_STORAGE_RETRIES_KEY = "SDK_STORAGE_RETRIES"

DEFAULT_INSTALL_ROOT = "/tmp/sdkprovisioner/platforms"
SENTINEL_FILE_NAME = ".sdk-download-sentinel"
MANIFEST_FILE_NAME = "build-manifest.toml"
GLOBAL_JSON_FILE_NAME = "global.json"

DEFAULT_TIMEOUT = 60
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF = 1.0


class OsFlavor(str, Enum):
    """Base image variant. Only ``stretch`` listings carry version metadata."""

    STRETCH = "stretch"
    BUSTER = "buster"
    BULLSEYE = "bullseye"
    BOOKWORM = "bookworm"
    FOCAL = "focal-scm"

    @property
    def has_version_metadata(self):
        return self is OsFlavor.STRETCH

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            known = ", ".join(f.value for f in cls)
            raise ConfigError(f"Unknown OS flavor '{value}'. Expected one of: {known}.") from None


@dataclass(frozen=True)
class Settings:
    """Configuration threaded through every component of a resolution run."""

    base_url: Optional[str] = None
    os_flavor: OsFlavor = OsFlavor.STRETCH
    install_root: str = DEFAULT_INSTALL_ROOT
    link_base_dir: Optional[str] = None
    enable_dynamic_install: bool = True
    sentinel_name: str = SENTINEL_FILE_NAME
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    backoff: float = DEFAULT_BACKOFF
    cancel_event: threading.Event = field(default_factory=threading.Event, compare=False, repr=False)

    def __post_init__(self):
        if self.base_url is not None:
            object.__setattr__(self, "base_url", str(self.base_url).strip().rstrip("/"))
        object.__setattr__(self, "os_flavor", OsFlavor.parse(self.os_flavor))
        if self.retries < 0:
            raise ConfigError(f"Retries must not be negative, got {self.retries}.")

    @property
    def storage_base_url(self):
        """The SDK storage base URL. Raises :class:`ConfigError` when it is not configured."""
        if not self.base_url:
            raise ConfigError(f"Environment variable '{SDK_STORAGE_BASE_URL_KEY}' is required.")
        return self.base_url


def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    if os.path.exists(config_path):
        logger.debug(f"Loading configuration from {config_path}")
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            raise ConfigError(f"Error decoding TOML file at {config_path}: {e}") from e
        except IOError as e:
            raise ConfigError(f"Error reading configuration file at {config_path}: {e}") from e
    return {}


def _as_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in ("0", "false", "no", "off", "")


def load_settings(path=".", environ=None, **overrides):
    """Build :class:`Settings` from the project file, the environment and overrides.

    Later sources win: defaults, ``[sdk]`` in ``sdkprovisioner.toml``,
    environment variables, then keyword overrides (CLI options). ``None``
    overrides are ignored.
    """
    if environ is None:
        environ = os.environ

    values = {}
    sdk_section = load_config(path).get("sdk", {})
    for key in ("base_url", "os_flavor", "install_root", "link_base_dir",
                "enable_dynamic_install", "timeout", "retries", "backoff"):
        if key in sdk_section:
            values[key] = sdk_section[key]

    env_keys = {
        SDK_STORAGE_BASE_URL_KEY: "base_url",
        DEBIAN_FLAVOR_KEY: "os_flavor",
        DYNAMIC_INSTALL_ROOT_DIR_KEY: "install_root",
        SDK_LINK_BASE_DIR_KEY: "link_base_dir",
        ENABLE_DYNAMIC_INSTALL_KEY: "enable_dynamic_install",
        SDK_STORAGE_TIMEOUT_KEY: "timeout",
        SDK_STORAGE_RETRIES_KEY: "retries",
    }
    for env_key, name in env_keys.items():
        if environ.get(env_key):
            values[name] = environ[env_key]

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        if "enable_dynamic_install" in values:
            values["enable_dynamic_install"] = _as_bool(values["enable_dynamic_install"])
        if "timeout" in values:
            values["timeout"] = float(values["timeout"])
        if "retries" in values:
            values["retries"] = int(values["retries"])
        if "backoff" in values:
            values["backoff"] = float(values["backoff"])
    except ValueError as e:
        raise ConfigError(f"Invalid numeric setting: {e}") from e

    return Settings(base_url=values.pop("base_url", None), **values)


def read_pinned_version(platform, path="."):
    """Return the version pinned by the project for ``platform``, if any.

    Only dotnet pins today, through ``sdk.version`` in ``global.json``.
    """
    if platform != "dotnet":
        return None
    global_json = os.path.join(path, GLOBAL_JSON_FILE_NAME)
    if not os.path.isfile(global_json):
        return None
    try:
        with open(global_json, "r", encoding="utf-8-sig") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Error reading {global_json}: {e}", platform=platform) from e
    version = (data.get("sdk") or {}).get("version") if isinstance(data, dict) else None
    if version:
        logger.debug(f"Found pinned {platform} version {version} in {global_json}")
    return version or None
