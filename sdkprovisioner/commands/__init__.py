from .install import install
from .list_versions import list_versions
from .list_installed import list_installed
from .uninstall import uninstall
from .log import log
from .version import version

__all__ = ["install", "list_versions", "list_installed", "uninstall", "log", "version"]
