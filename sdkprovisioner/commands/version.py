import click
import importlib.metadata
from ..cli_logger import logger


@click.command()
def version():
    """Print the version of sdkprovisioner."""
    try:
        ver = importlib.metadata.version("sdkprovisioner")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of sdkprovisioner. Is it installed correctly?")
        return
    click.echo(f"sdkprovisioner version {ver}")
