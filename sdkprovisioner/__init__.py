"""Version resolution and dynamic installation of platform SDKs."""
from .catalog import CatalogFetcher, PlatformCatalog
from .config import OsFlavor, Settings, load_settings
from .default_version import DefaultVersionResolver
from .errors import (
    ConfigError,
    InstallError,
    LinkError,
    ManifestError,
    OperationCancelled,
    ProvisioningError,
    RemoteUnavailable,
    UnsupportedVersionError,
)
from .installer import InstallReport, SdkInstaller
from .linker import PreinstalledLinkManager
from .manifest import ManifestWriter, read_manifest
from .provisioner import ProvisionResult, SdkProvisioner
from .selector import ResolvedVersion, VersionRequest, VersionSelector, VersionSource
