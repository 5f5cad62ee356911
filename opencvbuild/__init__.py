from .build_env import (
    BuildEnvironment,
    BuildOptions,
    ConfigurationError,
    DEFAULT_OPENCV_VERSION,
    compute_opt_hash,
    merge_env_overrides,
)
