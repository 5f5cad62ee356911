import click
import os
from ..cli_logger import get_latest_log_file, LOG_DIR
from colorama import Fore, Style

LEVEL_COLORS = {
    "[WARNING]": Fore.YELLOW,
    "[ERROR]": Fore.RED,
    "[TRACEBACK]": Fore.RED,
    "[DEBUG]": Fore.WHITE + Style.DIM,
    "[SUCCESS]": Fore.GREEN,
}

def _colorize(line):
    for marker, color in LEVEL_COLORS.items():
        if marker in line:
            return f"{color}{line}{Style.RESET_ALL}"
    return f"{Fore.CYAN}{line}{Style.RESET_ALL}"

@click.command()
@click.option('--filename', default=None, help='The name of the log file to display.')
@click.option('--list', 'list_files', is_flag=True, help='List all log files.')
@click.option('--tail', default=None, type=int, help='Only show the last N lines.')
def log(filename, list_files, tail):
    """Display a log file (the latest by default) or list all log files."""
    log_files = sorted(f for f in os.listdir(LOG_DIR) if f.endswith(".log")) if os.path.isdir(LOG_DIR) else []

    if list_files:
        if not log_files:
            click.echo("No log files found.")
            return
        click.echo("Available log files:")
        for f in log_files:
            click.echo(f"  {f}")
        return

    log_file = os.path.join(LOG_DIR, filename) if filename else get_latest_log_file()
    if not log_file or not os.path.exists(log_file):
        click.echo("No log files found.")
        return

    click.echo(f"Displaying log file: {log_file}")
    try:
        with open(log_file, 'r') as f:
            lines = [line.rstrip("\n") for line in f]
    except IOError as e:
        click.echo(f"Error reading log file {log_file}: {e}", err=True)
        click.echo("Please check file permissions.", err=True)
        return

    if tail is not None:
        lines = lines[-tail:] if tail > 0 else []
    for line in lines:
        click.echo(_colorize(line))
