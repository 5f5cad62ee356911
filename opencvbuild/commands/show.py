import click
import json
from ..build_env import BuildEnvironment
from ..cli_logger import logger
from ..decorators import handle_exceptions

@click.command()
@click.pass_context
@handle_exceptions
def show(ctx):
    """Print the resolved build configuration as JSON."""
    with logger.quieted():
        build_env = BuildEnvironment(ctx.obj)
        build_env.report_auto_build_flags()
        data = build_env.to_dict()
    click.echo(json.dumps(data, indent=4))
