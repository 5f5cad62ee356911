import click
from ..build_env import BuildEnvironment
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@handle_exceptions
def cores(ctx):
    """Print the number of logical processors available for the build."""
    with logger.quieted():
        build_env = BuildEnvironment(ctx.obj)
    click.echo(build_env.number_of_cores_available())
