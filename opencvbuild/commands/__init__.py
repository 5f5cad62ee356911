from .show import show
from .paths import paths
from .flags import flags
from .cores import cores
from .version import version
from .log import log

__all__ = ["show", "paths", "flags", "cores", "version", "log"]
