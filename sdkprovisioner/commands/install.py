import click
from .. import config as config_module
from ..decorators import handle_exceptions, storage_options
from ..provisioner import SdkProvisioner
from ..cli_logger import logger


@click.command()
@click.option("--platform", "platform_name", required=True, help="Platform to provision, e.g. dotnet.")
@click.option("--platform-version", default=None, help="Version (or major.minor hint) to use.")
@click.option("--pinned-version", default=None,
              help="Version pinned by the project. Read from global.json for dotnet when omitted.")
@click.option("--link-base-dir", default=None, help="Directory to publish version links under (SDK_LINK_BASE_DIR).")
@click.option("--output", "-o", "output_dir", default=None, help="Build output directory for the manifest.")
@storage_options
@click.pass_context
@handle_exceptions
def install(ctx, platform_name, platform_version, pinned_version, link_base_dir, output_dir,
            base_url, os_flavor, install_root):
    """Resolve a platform version and install it if needed."""
    path = ctx.obj["path"]
    settings = config_module.load_settings(
        path=path,
        base_url=base_url,
        os_flavor=os_flavor,
        install_root=install_root,
        link_base_dir=link_base_dir,
    )
    if pinned_version is None:
        pinned_version = config_module.read_pinned_version(platform_name, path=path)

    result = SdkProvisioner(settings).provision(
        platform_name,
        explicit_version=platform_version,
        pinned_version=pinned_version,
        output_dir=output_dir,
    )
    logger.success(f"{platform_name} {result.resolved.version} is ready at {result.install.install_dir}")
    click.echo(result.install.install_dir)
