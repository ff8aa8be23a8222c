from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .cli_logger import logger
from .config import OsFlavor
from .catalog import RUNTIME_METADATA_NAMES
from .errors import ConfigError, UnsupportedVersionError
from .utils.versions import is_coarse, latest, matches_hint


class VersionSource(str, Enum):
    EXPLICIT = "Explicit"
    PINNED = "Pinned"
    DEFAULT = "Default"


@dataclass(frozen=True)
class VersionRequest:
    platform: str
    explicit_version: Optional[str] = None
    pinned_version: Optional[str] = None
    os_flavor: OsFlavor = OsFlavor.STRETCH


@dataclass(frozen=True)
class ResolvedVersion:
    platform: str
    version: str
    source: VersionSource
    runtime_version: Optional[str] = None


def _match_catalog(catalog, candidate):
    if candidate in catalog.supported_versions:
        return candidate
    if candidate in catalog.runtime_versions:
        return catalog.runtime_versions[candidate]
    if is_coarse(candidate):
        runtime = latest(v for v in catalog.runtime_versions if matches_hint(v, candidate))
        if runtime is not None:
            return catalog.runtime_versions[runtime]
        return latest(v for v in catalog.supported_versions if matches_hint(v, candidate))
    return None


def _runtime_for(catalog, version):
    return latest(runtime for runtime, sdk in catalog.runtime_versions.items() if sdk == version)


class VersionSelector:
    """Picks the version to install: explicit request, then project pin, then default.

    A coarse explicit hint (``2.1``) yields to a project pin. Whatever tier
    wins is validated against the catalog.
    """

    def select(self, request, catalog, default_version=None):
        explicit = request.explicit_version
        pinned = request.pinned_version

        if explicit and pinned and is_coarse(explicit):
            logger.info(
                f"Using {request.platform} version {pinned} pinned by the project "
                f"instead of the requested version hint {explicit}"
            )
            candidate, source = pinned, VersionSource.PINNED
        elif explicit:
            candidate, source = explicit, VersionSource.EXPLICIT
        elif pinned:
            candidate, source = pinned, VersionSource.PINNED
        else:
            candidate, source = default_version or catalog.default_version, VersionSource.DEFAULT
            if not candidate:
                raise ConfigError("Default version cannot be empty.", platform=request.platform)

        version = _match_catalog(catalog, candidate)
        if version is None:
            if source is VersionSource.DEFAULT:
                logger.warning(
                    f"Default {request.platform} version {candidate} is not in the storage catalog."
                )
            raise UnsupportedVersionError(request.platform, candidate)

        runtime_version = None
        if request.platform in RUNTIME_METADATA_NAMES:
            if explicit and (explicit in catalog.runtime_versions or is_coarse(explicit)):
                # the caller asked for a runtime line, not a specific SDK
                runtime_version = explicit
            else:
                runtime_version = _runtime_for(catalog, version)
        logger.debug(f"Resolved {request.platform} version {version} ({source.value})")
        return ResolvedVersion(
            platform=request.platform,
            version=version,
            source=source,
            runtime_version=runtime_version,
        )
