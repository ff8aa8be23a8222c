import os
import shutil
import tarfile
import tempfile
import contextlib
from dataclasses import dataclass

from .cli_logger import logger
from .errors import InstallError, RemoteUnavailable
from .utils import download_file, extract, version_key

# Bounded so two installers cannot keep displacing each other forever.
MAX_PUBLISH_ATTEMPTS = 5
STAGING_MARKER = ".staging-"


@dataclass(frozen=True)
class InstallReport:
    platform: str
    version: str
    install_dir: str
    already_installed: bool


def archive_name(platform, version, os_flavor):
    if os_flavor.has_version_metadata:
        return f"{platform}-{version}.tar.gz"
    return f"{platform}-{os_flavor.value}-{version}.tar.gz"


class SdkInstaller:
    """Installs SDK archives under ``{install_root}/{platform}/{version}``.

    The sentinel file inside that directory is the only record of a finished
    install. It is written into the fully extracted staging tree, and the
    tree is then renamed into place, so the rename publishes tree and
    sentinel together. A directory at the install path without a sentinel can
    only be left over from a crash; the next caller replaces it.
    """

    def __init__(self, settings):
        self.settings = settings

    def install_dir(self, platform, version, install_root=None):
        return os.path.join(install_root or self.settings.install_root, platform, version)

    def sentinel_path(self, platform, version, install_root=None):
        return os.path.join(self.install_dir(platform, version, install_root), self.settings.sentinel_name)

    def is_installed(self, platform, version, install_root=None):
        return os.path.isfile(self.sentinel_path(platform, version, install_root))

    def download_url(self, platform, version):
        return f"{self.settings.storage_base_url}/{platform}/{archive_name(platform, version, self.settings.os_flavor)}"

    def ensure_installed(self, platform, version, install_root=None):
        install_root = install_root or self.settings.install_root
        install_dir = self.install_dir(platform, version, install_root)

        if self.is_installed(platform, version, install_root):
            logger.info(f"  - {platform} {version} is already installed at {install_dir}. Skipping.")
            return InstallReport(platform, version, install_dir, already_installed=True)

        url = self.download_url(platform, version)
        logger.info(f"  - Installing {platform} version {version} into {install_dir}...")
        platform_dir = os.path.dirname(install_dir)
        try:
            os.makedirs(platform_dir, exist_ok=True)
            staging_dir = tempfile.mkdtemp(prefix=f".{version}{STAGING_MARKER}", dir=platform_dir)
        except OSError as e:
            raise InstallError(
                f"Could not prepare {platform_dir} for installing {platform} {version}: {e}",
                platform=platform, version=version,
            ) from e

        try:
            archive = download_file(url, os.path.join(staging_dir, os.path.basename(url)), self.settings)
            tree = extract(archive, os.path.join(staging_dir, "tree"))
            os.remove(archive)
            self._write_sentinel(tree)
            published = self._publish_tree(tree, install_dir, platform, version, install_root)
        except RemoteUnavailable as e:
            raise InstallError(
                f"Failed to download {platform} {version}: {e}", platform=platform, version=version
            ) from e
        except (tarfile.TarError, OSError) as e:
            raise InstallError(
                f"Failed to install {platform} {version} into {install_dir}: {e}",
                platform=platform, version=version,
            ) from e
        finally:
            shutil.rmtree(staging_dir, ignore_errors=True)

        if not published:
            return InstallReport(platform, version, install_dir, already_installed=True)
        logger.success(f"Installed {platform} {version} at {install_dir}")
        return InstallReport(platform, version, install_dir, already_installed=False)

    def _publish_tree(self, tree, install_dir, platform, version, install_root):
        """Rename the complete ``tree`` onto ``install_dir``.

        Returns False when another installer published the version first; the
        unused ``tree`` is left for the caller to discard. A directory at
        ``install_dir`` without a sentinel is a crashed attempt and is
        replaced.
        """
        for _ in range(MAX_PUBLISH_ATTEMPTS):
            try:
                os.rename(tree, install_dir)
                return True
            except OSError:
                if not os.path.isdir(install_dir):
                    raise
            if self.is_installed(platform, version, install_root):
                logger.debug(f"{platform} {version} was installed concurrently; discarding our copy")
                return False
            self._remove_incomplete(install_dir, version)
        raise InstallError(
            f"Could not publish {platform} {version} to {install_dir} after {MAX_PUBLISH_ATTEMPTS} attempts",
            platform=platform, version=version,
        )

    def _remove_incomplete(self, install_dir, version):
        logger.warning(f"Replacing incomplete installation at {install_dir}")
        stale = tempfile.mkdtemp(prefix=f".{version}.stale-", dir=os.path.dirname(install_dir))
        moved = os.path.join(stale, "tree")
        try:
            try:
                os.rename(install_dir, moved)
            except FileNotFoundError:
                # somebody else moved it first
                return
            if os.path.isfile(os.path.join(moved, self.settings.sentinel_name)):
                # published by another installer after our sentinel check
                logger.debug(f"Restoring concurrently published {install_dir}")
                with contextlib.suppress(OSError):
                    os.rename(moved, install_dir)
        finally:
            shutil.rmtree(stale, ignore_errors=True)

    def _write_sentinel(self, tree):
        with open(os.path.join(tree, self.settings.sentinel_name), "w"):
            pass

    def list_installed(self, platform=None, install_root=None):
        """Return ``{platform: [versions]}`` for every version with a sentinel."""
        install_root = install_root or self.settings.install_root
        installed = {}
        if not os.path.isdir(install_root):
            return installed
        platforms = [platform] if platform else sorted(os.listdir(install_root))
        for name in platforms:
            platform_dir = os.path.join(install_root, name)
            if not os.path.isdir(platform_dir):
                continue
            versions = sorted(
                (version for version in os.listdir(platform_dir)
                 if STAGING_MARKER not in version and self.is_installed(name, version, install_root)),
                key=version_key,
            )
            if versions:
                installed[name] = versions
        return installed

    def uninstall(self, platform, version, install_root=None):
        """Remove an installed version. Returns False when it was not installed.

        The sentinel goes first so a half-removed tree reads as not installed.
        """
        install_dir = self.install_dir(platform, version, install_root)
        if not os.path.isdir(install_dir):
            return False
        try:
            with contextlib.suppress(FileNotFoundError):
                os.remove(self.sentinel_path(platform, version, install_root))
            shutil.rmtree(install_dir)
        except OSError as e:
            raise InstallError(
                f"Failed to uninstall {platform} {version} from {install_dir}: {e}",
                platform=platform, version=version,
            ) from e
        logger.success(f"Uninstalled {platform} {version}")
        return True
