from colorama import Fore, Style


def highlight(text):
    """Color a name or path so it stands out in a log line."""
    return f"{Fore.MAGENTA}{Style.BRIGHT}{text}{Style.RESET_ALL}"


def format_number(text):
    """Color a version, count or flag value in a log line."""
    return f"{Fore.YELLOW}{text}{Style.RESET_ALL}"
