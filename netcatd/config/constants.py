"""Configuration defaults."""

# Prefix for environment variable overrides
ENV_PREFIX = "NETCATD_"

# Maximum size of a YAML config file (1 MB)
MAX_CONFIG_SIZE_BYTES = 1024 * 1024

DEFAULT_PORT = 7994

# Pending-connection queue length passed to listen()
DEFAULT_BACKLOG = 5
