import click
from ..build_env import BuildEnvironment
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@handle_exceptions
def flags(ctx):
    """Print the extra auto-build flags, one per line."""
    with logger.quieted():
        build_env = BuildEnvironment(ctx.obj)
        build_env.report_auto_build_flags()
        parsed = build_env.parse_auto_build_flags()
    for flag in parsed:
        click.echo(flag)
