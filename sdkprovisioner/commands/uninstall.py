import click
from .. import config as config_module
from ..decorators import handle_exceptions, storage_options
from ..installer import SdkInstaller
from ..cli_logger import logger


@click.command()
@click.argument("platform_name")
@click.argument("platform_version", required=False)
@click.option("--all", "remove_all", is_flag=True, help="Remove every installed version of the platform.")
@storage_options
@click.pass_context
@handle_exceptions
def uninstall(ctx, platform_name, platform_version, remove_all, base_url, os_flavor, install_root):
    """Uninstall one version (or --all versions) of a platform."""
    if not platform_version and not remove_all:
        raise click.UsageError("Give a PLATFORM_VERSION or --all.")

    settings = config_module.load_settings(
        path=ctx.obj["path"],
        base_url=base_url,
        os_flavor=os_flavor,
        install_root=install_root,
    )
    installer = SdkInstaller(settings)

    if remove_all:
        versions = installer.list_installed(platform=platform_name).get(platform_name, [])
        logger.info(f"Attempting to uninstall all {platform_name} versions...")
    else:
        versions = [platform_version]

    for version in versions:
        if not installer.uninstall(platform_name, version):
            logger.info(f"{platform_name} {version} is not installed.")
