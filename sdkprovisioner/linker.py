import os

from .cli_logger import logger
from .errors import LinkError

# Extra path segment under {link_base_dir}/{platform} where tools look up versions.
PLATFORM_LINK_SUBDIRS = {
    "dotnet": "sdk",
}


def link_path(platform, version, link_base_dir):
    parts = [link_base_dir, platform]
    subdir = PLATFORM_LINK_SUBDIRS.get(platform)
    if subdir:
        parts.append(subdir)
    parts.append(version)
    return os.path.join(*parts)


def _same_target(link, existing_target, requested_target):
    # relative link targets resolve against the link's directory
    existing = os.path.normpath(os.path.join(os.path.dirname(link), existing_target))
    return existing == os.path.normpath(os.path.abspath(requested_target))


class PreinstalledLinkManager:
    """Publishes installed versions next to the versions baked into the image.

    Links are only ever added. An entry already present under the same name
    is accepted when it points at the same installation and reported as a
    :class:`LinkError` otherwise; it is never replaced.
    """

    def publish(self, platform, version, install_root, link_base_dir):
        target = os.path.abspath(os.path.join(install_root, platform, version))
        link = link_path(platform, version, link_base_dir)

        try:
            os.makedirs(os.path.dirname(link), exist_ok=True)
        except OSError as e:
            raise LinkError(link, None, target, reason=e.strerror or str(e)) from e
        try:
            os.symlink(target, link, target_is_directory=True)
            logger.info(f"  - Linked {link} -> {target}")
            return link
        except FileExistsError:
            pass
        except OSError as e:
            raise LinkError(link, None, target, reason=e.strerror or str(e)) from e

        if not os.path.islink(link):
            # a real directory or file baked into the image
            raise LinkError(link, link, target)
        existing_target = os.readlink(link)
        if not _same_target(link, existing_target, target):
            raise LinkError(link, existing_target, target)
        logger.debug(f"{link} already points to {target}")
        return link
