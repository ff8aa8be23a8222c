"""Remote SDK catalog: which versions of a platform can be installed.

The storage listing is blob-listing XML::

    <EnumerationResults>
      <Blobs>
        <Blob>
          <Name>dotnet-2.1.509.tar.gz</Name>
          <Metadata>
            <Sdk_version>2.1.509</Sdk_version>
            <Dotnet_runtime_version>2.1.13</Dotnet_runtime_version>
          </Metadata>
        </Blob>
      </Blobs>
    </EnumerationResults>

Only the metadata-bearing flavor carries ``Metadata``; for the others the
version is taken from the blob name.
"""
import re
import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional

from .cli_logger import logger
from .config import OsFlavor
from .errors import RemoteUnavailable
from .utils.remote import get_text
from .utils.versions import latest

CONTAINER_METADATA_URL_FORMAT = "{0}/{1}?restype=container&comp=list&include=metadata"

SDK_VERSION_METADATA_NAME = "Sdk_version"
LEGACY_SDK_VERSION_METADATA_NAME = "Version"
DOTNET_RUNTIME_VERSION_METADATA_NAME = "Dotnet_runtime_version"
LEGACY_DOTNET_RUNTIME_VERSION_METADATA_NAME = "Runtime_version"

# Platforms whose listing records a runtime next to the SDK that ships it.
RUNTIME_METADATA_NAMES = {
    "dotnet": (DOTNET_RUNTIME_VERSION_METADATA_NAME, LEGACY_DOTNET_RUNTIME_VERSION_METADATA_NAME),
}


@dataclass(frozen=True)
class BlobEntry:
    name: Optional[str]
    metadata: Dict[str, str] = field(default_factory=dict)

    def metadata_value(self, *names):
        """Return the first metadata value whose key matches one of ``names``, ignoring case."""
        lowered = {key.lower(): value for key, value in self.metadata.items()}
        for name in names:
            value = lowered.get(name.lower())
            if value:
                return value.strip()
        return None


@dataclass(frozen=True)
class PlatformCatalog:
    platform_name: str
    supported_versions: FrozenSet[str]
    default_version: Optional[str] = None
    # runtime version -> SDK version, for platforms that distinguish the two
    runtime_versions: Dict[str, str] = field(default_factory=dict)


class MetadataVersionExtractor:
    """Reads the version from blob metadata, falling back to the legacy field name."""

    def __init__(self, platform):
        self.platform = platform
        self.runtime_names = RUNTIME_METADATA_NAMES.get(platform)

    def extract_version(self, entry):
        return entry.metadata_value(SDK_VERSION_METADATA_NAME, LEGACY_SDK_VERSION_METADATA_NAME)

    def extract_runtime_version(self, entry):
        if not self.runtime_names:
            return None
        return entry.metadata_value(*self.runtime_names)


class FileNameVersionExtractor:
    """Parses ``<platform>-<flavor>-<version>.tar.gz`` blob names."""

    def __init__(self, platform, os_flavor):
        self.platform = platform
        self.pattern = re.compile(
            rf"^{re.escape(platform)}-{re.escape(os_flavor.value)}-(?P<version>.+?)\.tar\.gz$"
        )

    def extract_version(self, entry):
        if not entry.name:
            return None
        match = self.pattern.match(entry.name)
        if match:
            return match.group("version")
        return None

    def extract_runtime_version(self, entry):
        return None


def extractor_for(platform, os_flavor):
    if os_flavor.has_version_metadata:
        return MetadataVersionExtractor(platform)
    return FileNameVersionExtractor(platform, os_flavor)


def _local_name(element):
    # drop any "{namespace}" prefix
    return element.tag.rsplit("}", 1)[-1].lower()


def _child(element, name):
    for child in element:
        if _local_name(child) == name:
            return child
    return None


def parse_blob_listing(content) -> List[BlobEntry]:
    """Parse blob-listing XML into entries. Raises ``ElementTree.ParseError``."""
    # storage sends a byte order mark in front of the declaration
    root = ElementTree.fromstring(content.lstrip("\ufeff"))
    entries = []
    for blob in root.iter():
        if _local_name(blob) != "blob":
            continue
        name_element = _child(blob, "name")
        metadata_element = _child(blob, "metadata")
        metadata = {}
        if metadata_element is not None:
            metadata = {child.tag.rsplit("}", 1)[-1]: (child.text or "") for child in metadata_element}
        entries.append(BlobEntry(
            name=name_element.text.strip() if name_element is not None and name_element.text else None,
            metadata=metadata,
        ))
    return entries


class CatalogFetcher:
    def __init__(self, settings, default_resolver=None):
        self.settings = settings
        self.default_resolver = default_resolver

    def listing_url(self, platform):
        return CONTAINER_METADATA_URL_FORMAT.format(self.settings.storage_base_url, platform)

    def fetch(self, platform, os_flavor=None) -> PlatformCatalog:
        """Return the catalog of installable versions of ``platform``.

        Entries the flavor's extractor cannot read are skipped. Raises
        :class:`RemoteUnavailable` when the listing cannot be fetched or parsed.
        """
        os_flavor = OsFlavor.parse(os_flavor or self.settings.os_flavor)
        url = self.listing_url(platform)
        logger.debug(f"Getting list of available versions for platform {platform} from {url}")

        content = get_text(url, self.settings)
        try:
            entries = parse_blob_listing(content)
        except ElementTree.ParseError as e:
            raise RemoteUnavailable(
                f"Could not parse the version listing from {url}: {e}", url=url, transient=False
            ) from e

        extractor = extractor_for(platform, os_flavor)
        supported_versions = set()
        runtime_versions = {}
        for entry in entries:
            version = extractor.extract_version(entry)
            if not version:
                logger.debug(f"Skipping blob '{entry.name}': no {platform} version found")
                continue
            supported_versions.add(version)
            runtime_version = extractor.extract_runtime_version(entry)
            if runtime_version:
                # several SDK bands can ship one runtime; keep the newest
                runtime_versions[runtime_version] = latest(
                    filter(None, (runtime_versions.get(runtime_version), version))
                )

        default_version = None
        if self.default_resolver is not None:
            default_version = self.default_resolver.resolve_default(platform, os_flavor)

        logger.debug(f"Found {len(supported_versions)} {platform} versions for {os_flavor.value}")
        return PlatformCatalog(
            platform_name=platform,
            supported_versions=frozenset(supported_versions),
            default_version=default_version,
            runtime_versions=runtime_versions,
        )
