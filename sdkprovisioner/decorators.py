import functools
import click
import sys
from .cli_logger import logger
from .errors import ProvisioningError


def handle_exceptions(func):
    """Report provisioning errors as ``Error: <message>`` on stderr and exit with 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (click.Abort, click.ClickException):
            raise
        except ProvisioningError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except Exception as e:
            logger.error(f"An unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper


def storage_options(func):
    """Options shared by every command that talks to SDK storage or the install root."""
    options = [
        click.option("--base-url", default=None, help="Base URL of the SDK storage (SDK_STORAGE_BASE_URL)."),
        click.option("--os-flavor", default=None, help="OS flavor of the image, e.g. stretch or buster (DEBIAN_FLAVOR)."),
        click.option("--dynamic-install-root-dir", "install_root", default=None,
                     help="Directory SDKs are installed into (DYNAMIC_INSTALL_ROOT_DIR)."),
    ]
    for option in reversed(options):
        func = option(func)
    return func
