from .cli_logger import logger
from .config import OsFlavor
from .errors import ConfigError
from .utils.remote import get_text

DEFAULT_VERSION_FILE_NAME = "defaultVersion.txt"
DEFAULT_VERSION_FILE_PREFIX = "defaultVersion"
COMMENT_PREFIXES = ("#", "//")


def first_version_line(content):
    """Return the first line of ``content`` that is neither blank nor a comment."""
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith(COMMENT_PREFIXES):
            return line
    return None


class DefaultVersionResolver:
    def __init__(self, settings):
        self.settings = settings

    def default_version_url(self, platform, os_flavor):
        if os_flavor.has_version_metadata:
            return f"{self.settings.storage_base_url}/{platform}/{DEFAULT_VERSION_FILE_NAME}"
        return (
            f"{self.settings.storage_base_url}/{platform}/"
            f"{DEFAULT_VERSION_FILE_PREFIX}.{os_flavor.value}.{DEFAULT_VERSION_FILE_PREFIX}"
        )

    def resolve_default(self, platform, os_flavor=None):
        os_flavor = OsFlavor.parse(os_flavor or self.settings.os_flavor)
        url = self.default_version_url(platform, os_flavor)
        logger.debug(f"Getting the default version from url {url}")

        default_version = first_version_line(get_text(url, self.settings) or "")
        if not default_version:
            raise ConfigError("Default version cannot be empty.", platform=platform, url=url)

        logger.debug(f"Got the default version for {platform} as {default_version}")
        return default_version
