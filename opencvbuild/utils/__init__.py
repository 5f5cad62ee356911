from .formatting import highlight, format_number
from .platform import is_win, is_osx, is_unix
