import click
from .commands import *


@click.group()
@click.option("--path", "-p", default=".", help="Path to the project directory.")
@click.pass_context
def cli(ctx, path):
    """Resolve, install and publish platform SDK versions."""
    ctx.obj = {"path": path}

cli.add_command(install)
cli.add_command(list_versions)
cli.add_command(list_installed)
cli.add_command(uninstall)
cli.add_command(log)
cli.add_command(version)

if __name__ == '__main__':
    cli()
