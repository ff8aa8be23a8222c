import click
from .. import config as config_module
from ..decorators import handle_exceptions, storage_options
from ..installer import SdkInstaller
from ..cli_logger import logger


@click.command(name="list-installed")
@click.argument("platform_name", required=False)
@storage_options
@click.pass_context
@handle_exceptions
def list_installed(ctx, platform_name, base_url, os_flavor, install_root):
    """List dynamically installed platform versions."""
    settings = config_module.load_settings(
        path=ctx.obj["path"],
        base_url=base_url,
        os_flavor=os_flavor,
        install_root=install_root,
    )
    installed = SdkInstaller(settings).list_installed(platform=platform_name)
    if not installed:
        logger.info(f"No platforms installed under {settings.install_root}.")
        return

    for name, versions in installed.items():
        click.echo(f"{name}:")
        for version in versions:
            click.echo(f"  - {version}")
