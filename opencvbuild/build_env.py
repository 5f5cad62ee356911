import hashlib
import os
from collections import namedtuple
from dataclasses import dataclass, fields
from typing import Optional

from .cli_logger import logger
from .config import read_manifest_section, MANIFEST_FILE
from .utils import highlight, format_number, is_win

DEFAULT_OPENCV_VERSION = "3.4.16"

# Builds live inside the package directory, one directory per version and flag set.
MODULE_ROOT = os.path.dirname(os.path.abspath(__file__))

AUTO_BUILD_FILE = "auto-build.json"


class ConfigurationError(FileNotFoundError):
    """Raised when the build environment cannot be set up."""


@dataclass
class BuildOptions:
    """Explicit build parameters. These take priority over the manifest and the environment."""
    version: Optional[str] = None
    auto_build_build_cuda: Optional[bool] = None
    auto_build_without_contrib: Optional[bool] = None
    disable_auto_build: Optional[bool] = None
    auto_build_flags: Optional[str] = None
    rootcwd: Optional[str] = None
    opencv_include_dir: Optional[str] = None
    opencv_lib_dir: Optional[str] = None
    opencv_bin_dir: Optional[str] = None


OptionSpec = namedtuple("OptionSpec", ["param_key", "manifest_key", "env_name", "kind"])

# Options resolved as parameter > manifest > environment > empty.
COMMON_OPTIONS = (
    OptionSpec("auto_build_flags", "autoBuildFlags", "OPENCV4NODEJS_AUTOBUILD_FLAGS", "str"),
    OptionSpec("auto_build_build_cuda", "autoBuildBuildCuda", "OPENCV4NODEJS_BUILD_CUDA", "bool"),
    OptionSpec("auto_build_without_contrib", "autoBuildWithoutContrib", "OPENCV4NODEJS_AUTOBUILD_WITHOUT_CONTRIB", "bool"),
    OptionSpec("disable_auto_build", "disableAutoBuild", "OPENCV4NODEJS_DISABLE_AUTOBUILD", "bool"),
    OptionSpec("opencv_include_dir", "opencvIncludeDir", "OPENCV_INCLUDE_DIR", "str"),
    OptionSpec("opencv_lib_dir", "opencvLibDir", "OPENCV_LIB_DIR", "str"),
    OptionSpec("opencv_bin_dir", "opencvBinDir", "OPENCV_BIN_DIR", "str"),
)

OPTIONS_BY_KEY = {spec.param_key: spec for spec in COMMON_OPTIONS}

# Resolved directory overrides that are published to the environment.
ENV_OVERRIDE_KEYS = ("opencv_include_dir", "opencv_lib_dir", "opencv_bin_dir")


def normalize_params(opts):
    """
    Turn a BuildOptions, a dict or None into a dict holding only the keys that were given.

    Dict keys may be either the snake_case parameter names or the camelCase
    manifest names. For a BuildOptions, a field set to None counts as absent.
    """
    if opts is None:
        return {}
    if isinstance(opts, BuildOptions):
        return {f.name: getattr(opts, f.name) for f in fields(opts) if getattr(opts, f.name) is not None}
    aliases = {spec.manifest_key: spec.param_key for spec in COMMON_OPTIONS}
    return {aliases.get(key, key): value for key, value in dict(opts).items()}


def resolve_value(params, manifest, spec, env):
    """
    Resolve one option through the three tiers.

    A parameter that is present wins even when falsy; booleans collapse to
    '1' or ''. A manifest value only counts when truthy, and a non-string
    value only counts for a boolean option; otherwise the environment
    variable is used.
    """
    if spec.param_key in params:
        value = params[spec.param_key]
        if isinstance(value, bool):
            return "1" if value else ""
        return value or ""
    value = manifest.get(spec.manifest_key)
    if value:
        if isinstance(value, str):
            return value
        if spec.kind == "bool":
            return "1"
    return env.get(spec.env_name) or ""


def merge_env_overrides(target, overrides):
    """
    Write each non-empty override into target unless it already holds that value.

    Returns the names of the variables that were written.
    """
    written = []
    for name, value in overrides.items():
        if value and target.get(name) != value:
            target[name] = value
            written.append(name)
    return written


def compute_opt_hash(auto_build_flags, with_cuda=False, without_contrib=False):
    """Short suffix that keeps builds with different flags in different directories."""
    opt_args = auto_build_flags if isinstance(auto_build_flags, str) else ""
    if with_cuda:
        opt_args += "cuda"
    if without_contrib:
        opt_args += "noContrib"
    if not opt_args:
        return ""
    return "-" + hashlib.md5(opt_args.encode("utf-8")).hexdigest()[:5]


class BuildEnvironment:
    """
    Resolved configuration and derived paths for a single OpenCV build.

    Options are read, in priority order, from the explicit ``opts``, the
    ``opencv4nodejs`` section of ``<rootcwd>/package.json`` and the ``env``
    mapping (``os.environ`` by default). Include/lib/bin overrides are merged
    back into ``env`` unless ``apply_env`` is False, in which case callers
    pass ``env_overrides`` on themselves.
    """

    def __init__(self, opts=None, env=None, apply_env=True):
        self.env = os.environ if env is None else env
        params = normalize_params(opts)

        self.opencv_version = self._resolve_version(params)

        if self.env.get("INIT_CWD"):
            logger.info(f"{highlight('INIT_CWD')} is defined overwriting root path to {highlight(self.env['INIT_CWD'])}")
        self.rootcwd = params.get("rootcwd") or self.env.get("INIT_CWD") or os.getcwd()
        if not os.path.exists(self.rootcwd):
            raise ConfigurationError(f"{self.rootcwd} does not exist")

        manifest = {}
        try:
            manifest = read_manifest_section(self.rootcwd)
        except Exception as e:
            logger.error(f"Failed to parse {MANIFEST_FILE}: {e}")

        if manifest:
            logger.info(f"The following opencv4nodejs options are set in the {MANIFEST_FILE}:")
            for key, value in manifest.items():
                logger.step_info(f"{highlight(key)}: {format_number(value)}", indent=2)

        resolved = {spec.param_key: resolve_value(params, manifest, spec, self.env) for spec in COMMON_OPTIONS}

        self.auto_build_flags = resolved["auto_build_flags"]
        self.build_with_cuda = bool(resolved["auto_build_build_cuda"])
        self.is_without_contrib = bool(resolved["auto_build_without_contrib"])
        self.is_auto_build_disabled = bool(resolved["disable_auto_build"])

        self.env_overrides = {
            OPTIONS_BY_KEY[key].env_name: resolved[key] for key in ENV_OVERRIDE_KEYS if resolved[key]
        }
        if apply_env:
            merge_env_overrides(self.env, self.env_overrides)

        self._flags_reported = False

    def _resolve_version(self, params):
        if params.get("version"):
            return params["version"]
        env_version = self.env.get("OPENCV4NODEJS_AUTOBUILD_OPENCV_VERSION")
        if not env_version:
            logger.info(f"{highlight('OPENCV4NODEJS_AUTOBUILD_OPENCV_VERSION')} is not defined using default version {format_number(DEFAULT_OPENCV_VERSION)}")
            return DEFAULT_OPENCV_VERSION
        logger.info(f"{highlight('OPENCV4NODEJS_AUTOBUILD_OPENCV_VERSION')} is defined using version {format_number(env_version)}")
        return env_version

    @property
    def opencv_include_dir(self):
        """The include directory override, if any."""
        return self.env_overrides.get("OPENCV_INCLUDE_DIR") or self.env.get("OPENCV_INCLUDE_DIR") or ""

    def parse_auto_build_flags(self):
        """
        Split the auto-build flags on single spaces.

        Quoting and escaping are not supported, so a flag value cannot contain a space.
        """
        flag_str = self.auto_build_flags
        if isinstance(flag_str, str) and flag_str:
            logger.debug(f"Using flags from OPENCV4NODEJS_AUTOBUILD_FLAGS: {flag_str}")
            return flag_str.split(" ")
        return []

    def number_of_cores_available(self):
        """Logical processors this process may run on."""
        getaffinity = getattr(os, "sched_getaffinity", None)
        if getaffinity is not None:
            return len(getaffinity(0))
        return os.cpu_count() or 1

    def report_auto_build_flags(self):
        """Log whether extra build flags are set. Only the first call logs."""
        if self._flags_reported:
            return False
        if not self.auto_build_flags:
            logger.info(f"{highlight('OPENCV4NODEJS_AUTOBUILD_FLAGS')} is not defined, No extra flags will be append to the build command")
        else:
            logger.info(f"{highlight('OPENCV4NODEJS_AUTOBUILD_FLAGS')} is defined, as {format_number(self.auto_build_flags)}")
        self._flags_reported = True
        return True

    @property
    def opt_hash(self):
        return compute_opt_hash(self.auto_build_flags, self.build_with_cuda, self.is_without_contrib)

    # -------- Derived paths --------
    @property
    def root_dir(self):
        return MODULE_ROOT

    @property
    def opencv_root(self):
        return os.path.join(self.root_dir, f"opencv-{self.opencv_version}{self.opt_hash}")

    @property
    def opencv_src(self):
        return os.path.join(self.opencv_root, "opencv")

    @property
    def opencv_contrib_src(self):
        return os.path.join(self.opencv_root, "opencv_contrib")

    @property
    def opencv_contrib_modules(self):
        return os.path.join(self.opencv_contrib_src, "modules")

    @property
    def opencv_build(self):
        return os.path.join(self.opencv_root, "build")

    @property
    def opencv_include(self):
        return os.path.join(self.opencv_build, "include")

    @property
    def opencv4_include(self):
        return os.path.join(self.opencv_include, "opencv4")

    @property
    def opencv_lib_dir(self):
        if is_win():
            return os.path.join(self.opencv_build, "lib", "Release")
        return os.path.join(self.opencv_build, "lib")

    @property
    def opencv_bin_dir(self):
        if is_win():
            return os.path.join(self.opencv_build, "bin", "Release")
        return os.path.join(self.opencv_build, "bin")

    @property
    def auto_build_file(self):
        return os.path.join(self.opencv_root, AUTO_BUILD_FILE)

    def paths(self):
        """All derived paths, keyed by accessor name."""
        return {
            "root_dir": self.root_dir,
            "opencv_root": self.opencv_root,
            "opencv_src": self.opencv_src,
            "opencv_contrib_src": self.opencv_contrib_src,
            "opencv_contrib_modules": self.opencv_contrib_modules,
            "opencv_build": self.opencv_build,
            "opencv_include": self.opencv_include,
            "opencv4_include": self.opencv4_include,
            "opencv_lib_dir": self.opencv_lib_dir,
            "opencv_bin_dir": self.opencv_bin_dir,
            "auto_build_file": self.auto_build_file,
        }

    def to_dict(self):
        return {
            "opencv_version": self.opencv_version,
            "rootcwd": self.rootcwd,
            "auto_build_flags": self.auto_build_flags,
            "build_with_cuda": self.build_with_cuda,
            "is_without_contrib": self.is_without_contrib,
            "is_auto_build_disabled": self.is_auto_build_disabled,
            "opt_hash": self.opt_hash,
            "env_overrides": dict(self.env_overrides),
            "paths": self.paths(),
        }
