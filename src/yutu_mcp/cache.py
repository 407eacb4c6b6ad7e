from __future__ import annotations

from pathlib import Path

from platformdirs import user_config_dir

from .platforms import HostContext

_ENV_CACHE_DIR = "YUTU_MCP_CACHE_DIR"
_ENV_CONFIG_DIR = "YUTU_MCP_CONFIG_DIR"

APP_NAME = "yutu-mcp"
BINARIES_DIRNAME = "binaries"


def package_root() -> Path:
    return Path(__file__).resolve().parent


def get_cache_root(ctx: HostContext) -> Path:
    """
    Return the directory holding downloaded binaries.

    Override with env var:
      YUTU_MCP_CACHE_DIR=/path/to/binaries

    Default:
      {package install root}/binaries
    """
    override = ctx.getenv(_ENV_CACHE_DIR)
    if override:
        return Path(override).expanduser().resolve()

    return package_root() / BINARIES_DIRNAME


def get_config_dir(ctx: HostContext) -> Path:
    """
    Directory for the OAuth client secret and cached token.

    Override with env var:
      YUTU_MCP_CONFIG_DIR=/path/to/config

    Default:
      platformdirs.user_config_dir("yutu-mcp")  (~/.config/yutu-mcp on Linux)
    """
    override = ctx.getenv(_ENV_CONFIG_DIR)
    if override:
        return Path(override).expanduser().resolve()

    return Path(user_config_dir(APP_NAME, appauthor=False))
