"""Release endpoints, artifact naming and handoff constants."""

# GitHub API URL structure
GITHUB_API_BASE = "https://api.github.com"
GITHUB_REPOS_PATH = "repos"
RELEASES_PATH = "releases"
LATEST_PATH = "latest"

# gscache repository constants
GSCACHE_OWNER = "breezewish"
GSCACHE_REPO = "gscache"
DOWNLOAD_BASE = f"https://github.com/{GSCACHE_OWNER}/{GSCACHE_REPO}/releases/download"

ARTIFACT_NAME = "gscache"
ASSET_TEMPLATE = "{name}_Linux_{arch_token}.tar.{ext}"
# Executable name used by early releases, before the archive layout was fixed
LEGACY_BINARY_TEMPLATE = "{name}_linux_{arch_token}"

LATEST = "latest"
MAX_RETRIES = 5
RETRY_BASE_DELAY = 0.5
USER_AGENT = "gscache-setup"

# tarfile read modes, keyed by the compression suffix of the release asset
COMPRESSION_MODES = {
    "gz": "r:gz",
    "xz": "r:xz",
    "bz2": "r:bz2",
}
DEFAULT_COMPRESSION = "gz"

CONFIG_DIR_NAME = "gscache"
CONFIG_FILE_NAME = "config.toml"

GOCACHEPROG_VAR = "GOCACHEPROG"
PROG_SUFFIX = "prog"

API_BASE_ENV = "GSCACHE_SETUP_API_BASE"
DOWNLOAD_BASE_ENV = "GSCACHE_SETUP_DOWNLOAD_BASE"
