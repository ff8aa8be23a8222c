from dataclasses import dataclass
from typing import Optional

from .catalog import CatalogFetcher
from .cli_logger import logger
from .default_version import DefaultVersionResolver
from .errors import InstallError
from .installer import InstallReport, SdkInstaller
from .linker import PreinstalledLinkManager
from .manifest import ManifestWriter, entries_for
from .selector import ResolvedVersion, VersionRequest, VersionSelector


@dataclass(frozen=True)
class ProvisionResult:
    resolved: ResolvedVersion
    install: InstallReport
    link_path: Optional[str] = None
    manifest_path: Optional[str] = None


class SdkProvisioner:
    """Resolve, install, link and record one platform version.

    Resolution errors abort before anything touches the install root.
    """

    def __init__(self, settings):
        self.settings = settings
        self.fetcher = CatalogFetcher(settings, DefaultVersionResolver(settings))
        self.selector = VersionSelector()
        self.installer = SdkInstaller(settings)
        self.linker = PreinstalledLinkManager()
        self.manifest_writer = ManifestWriter()

    def resolve(self, request):
        catalog = self.fetcher.fetch(request.platform, request.os_flavor)
        return self.selector.select(request, catalog)

    def provision(self, platform, explicit_version=None, pinned_version=None, output_dir=None):
        settings = self.settings
        request = VersionRequest(
            platform=platform,
            explicit_version=explicit_version,
            pinned_version=pinned_version,
            os_flavor=settings.os_flavor,
        )
        resolved = self.resolve(request)
        logger.info(f"Using {platform} version {resolved.version} ({resolved.source.value.lower()})")

        if settings.enable_dynamic_install:
            report = self.installer.ensure_installed(platform, resolved.version, settings.install_root)
        elif self.installer.is_installed(platform, resolved.version):
            report = InstallReport(
                platform, resolved.version,
                self.installer.install_dir(platform, resolved.version),
                already_installed=True,
            )
        else:
            raise InstallError(
                f"{platform} {resolved.version} is not installed and dynamic installation is disabled.",
                platform=platform, version=resolved.version,
            )

        link = None
        if settings.link_base_dir:
            link = self.linker.publish(platform, resolved.version, settings.install_root, settings.link_base_dir)

        manifest_path = None
        if output_dir:
            manifest_path = self.manifest_writer.write(
                self.manifest_writer.manifest_path(output_dir),
                entries_for(resolved, settings.os_flavor),
            )

        return ProvisionResult(resolved=resolved, install=report, link_path=link, manifest_path=manifest_path)
