import click
import importlib.metadata
import sys
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of the opencvbuild tool."""
    try:
        ver = importlib.metadata.version("opencvbuild")
        logger.info(f"opencvbuild version {ver}")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of opencvbuild. Is it installed correctly?")
    except Exception as e:
        logger.error(f"An unexpected error occurred while determining opencvbuild version: {e}")
        logger.exception(*sys.exc_info())
