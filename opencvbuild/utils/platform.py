import sys


def is_win():
    return sys.platform == "win32"


def is_osx():
    return sys.platform == "darwin"


def is_unix():
    return not is_win() and not is_osx()
