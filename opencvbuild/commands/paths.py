import click
from ..build_env import BuildEnvironment
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@handle_exceptions
def paths(ctx):
    """List the source, build and artifact directories of the OpenCV build."""
    with logger.quieted():
        build_env = BuildEnvironment(ctx.obj)
        build_paths = build_env.paths()
    for name, path in build_paths.items():
        click.echo(f"{name}: {path}")
