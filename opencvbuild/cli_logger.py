import contextlib
import datetime
import re
import sys
import traceback
import os
from colorama import Fore, Style, init

init(autoreset=True)

LOG_DIR = os.path.join(os.path.expanduser("~"), ".opencvbuild", "logs")
os.makedirs(LOG_DIR, exist_ok=True)

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def _strip_ansi(text):
    return ANSI_ESCAPE.sub("", text)


class Logger:
    def __init__(self):
        self.log_file = os.path.join(
            LOG_DIR,
            f"opencvbuild_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
        )
        # when set, stdout carries command output and informational lines only go to the log file
        self.quiet = False

    def _get_timestamp(self):
        return datetime.datetime.now().strftime("%H:%M:%S")

    def _log(self, level, message, color, to_stderr=False, prefix="", show_timestamp=True):
        if show_timestamp:
            timestamp = self._get_timestamp()
            log_message = f"[{timestamp}] [{level}] {prefix}{message}\n"
            console_message = f"{color}{Style.BRIGHT}[{timestamp}]{Style.RESET_ALL} {prefix}{message}{Style.RESET_ALL}"
        else:
            log_message = f"[{level}] {prefix}{message}\n"
            console_message = f"{color}{prefix}{message}{Style.RESET_ALL}"

        if to_stderr:
            print(console_message, file=sys.stderr)
        elif not self.quiet:
            print(console_message, file=sys.stdout)

        with open(self.log_file, "a") as f:
            f.write(_strip_ansi(log_message))

    @contextlib.contextmanager
    def quieted(self):
        """Keep informational lines off stdout while the block runs."""
        previous = self.quiet
        self.quiet = True
        try:
            yield self
        finally:
            self.quiet = previous

    def info(self, message):
        self._log("INFO", message, Fore.CYAN)

    def step_info(self, message, indent=0):
        prefix = " " * indent
        self._log("", message, Fore.CYAN, prefix=prefix, show_timestamp=False)

    def success(self, message):
        self._log("SUCCESS", message, Fore.GREEN, prefix=f"{Style.BRIGHT}✓ {Style.RESET_ALL}{Fore.GREEN}")

    def warning(self, message):
        self._log("WARNING", message, Fore.YELLOW, to_stderr=True,
                  prefix=f"{Style.BRIGHT}⚠ {Style.RESET_ALL}{Fore.YELLOW}")

    def error(self, message):
        self._log("ERROR", message, Fore.RED, to_stderr=True,
                  prefix=f"{Style.BRIGHT}✖ {Style.RESET_ALL}{Fore.RED}")

    def debug(self, message):
        self._log("DEBUG", message, Fore.WHITE + Style.DIM)

    def exception(self, exc_type, exc_value, exc_traceback):
        self.error(f"An unhandled exception occurred: {exc_value}")
        formatted_lines = traceback.format_exception(exc_type, exc_value, exc_traceback)
        for line in formatted_lines:
            for sub_line in line.splitlines():
                if sub_line.strip():
                    self._log("TRACEBACK", f">> {sub_line}", Fore.RED, to_stderr=True)


logger = Logger()

def get_latest_log_file():
    """Return the path to the latest log file."""
    log_files = [os.path.join(LOG_DIR, f) for f in os.listdir(LOG_DIR) if f.endswith(".log")]
    if not log_files:
        return None
    return max(log_files, key=os.path.getctime)
