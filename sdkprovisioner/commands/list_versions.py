import click
from .. import config as config_module
from ..catalog import CatalogFetcher
from ..decorators import handle_exceptions, storage_options
from ..default_version import DefaultVersionResolver
from ..utils import version_key


@click.command(name="list-versions")
@click.argument("platform_name")
@storage_options
@click.pass_context
@handle_exceptions
def list_versions(ctx, platform_name, base_url, os_flavor, install_root):
    """List the versions of a platform available in SDK storage."""
    settings = config_module.load_settings(
        path=ctx.obj["path"], base_url=base_url, os_flavor=os_flavor, install_root=install_root,
    )
    catalog = CatalogFetcher(settings, DefaultVersionResolver(settings)).fetch(platform_name)
    for version in sorted(catalog.supported_versions, key=version_key):
        marker = " (default)" if version == catalog.default_version else ""
        click.echo(f"{version}{marker}")
