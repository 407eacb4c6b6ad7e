from __future__ import annotations

import importlib.util
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

from .cache import get_cache_root
from .errors import (
    ArtifactMissingError,
    ProvisionError,
    SpawnFailedError,
    UnsupportedPlatformError,
)
from .platforms import (
    ArtifactDescriptor,
    HostContext,
    describe_host,
    resolve_platform,
    to_artifact_descriptor,
)
from .provision import ensure_installed
from .release import RELEASES_PAGE, configured_version
from .transport import Transport
from .util import eprint, safe_print

SETUP_COMMAND = "setup"
SETUP_MODULE = "yutu_mcp.setup_wizard"

# Shell convention for "terminated by signal N".
_SIGNAL_EXIT_BASE = 128


def run(
    args: Sequence[str],
    *,
    ctx: HostContext | None = None,
    transport: Transport | None = None,
) -> int:
    """
    Run the native yutu binary with args and return the exit status to use.

    `setup` as the first argument starts the credential setup wizard instead.
    Everything else is forwarded verbatim; the child shares this process's
    stdin/stdout/stderr and environment.
    """
    args = list(args)
    if ctx is None:
        ctx = HostContext.from_host()

    if args and args[0] == SETUP_COMMAND:
        return run_setup()

    try:
        descriptor = artifact_for_host(ctx)
    except UnsupportedPlatformError as e:
        eprint(str(e))
        eprint("Prebuilt binaries exist for darwin, linux and windows on amd64 and arm64.")
        return 1

    try:
        binary = provision(descriptor, ctx, transport=transport)
    except KeyboardInterrupt:
        eprint("\nDownload aborted.")
        return _SIGNAL_EXIT_BASE + 2
    except ProvisionError as e:
        _report_provision_failure(e, descriptor, ctx)
        return 1

    return spawn([str(binary), *args], what="yutu")


def artifact_for_host(ctx: HostContext) -> ArtifactDescriptor:
    key = resolve_platform(ctx)
    return to_artifact_descriptor(key, get_cache_root(ctx))


def provision(
    descriptor: ArtifactDescriptor,
    ctx: HostContext,
    *,
    transport: Transport | None = None,
) -> Path:
    if descriptor.local_path.exists():
        return descriptor.local_path

    # Automated builds never download on their own.
    if ctx.is_ci():
        raise ArtifactMissingError(descriptor.local_path, describe_host(ctx))

    return ensure_installed(descriptor, version=configured_version(ctx), transport=transport)


def run_setup() -> int:
    if importlib.util.find_spec(SETUP_MODULE) is None:
        eprint("Setup script not found. Please reinstall the package.")
        return 1

    safe_print("Starting YouTube MCP setup...\n")
    return spawn([sys.executable, "-m", SETUP_MODULE], what="setup")


def spawn(cmd: list[str], *, what: str) -> int:
    try:
        returncode = launch(cmd)
    except KeyboardInterrupt:
        return _SIGNAL_EXIT_BASE + 2
    except SpawnFailedError as e:
        eprint(f"Failed to start {what}: {e}")
        return 1
    return exit_status(returncode)


def launch(cmd: list[str]) -> int:
    # No stdin/stdout/stderr arguments: the child uses this process's handles directly.
    try:
        completed = subprocess.run(cmd, check=False)
    except OSError as e:
        raise SpawnFailedError(Path(cmd[0]), str(e)) from e
    return completed.returncode


def exit_status(returncode: int) -> int:
    """Map a child return code to ours; death by signal N becomes 128 + N, never 0."""
    if returncode < 0:
        return _SIGNAL_EXIT_BASE - returncode
    return returncode


def _report_provision_failure(
    e: ProvisionError, descriptor: ArtifactDescriptor, ctx: HostContext
) -> None:
    eprint(str(e))
    if e.__cause__ is not None:
        eprint(f"  caused by: {e.__cause__}")
    eprint(f"Expected binary at: {descriptor.local_path}")
    eprint(f"Expected binary for: {describe_host(ctx)}")
    if isinstance(e, ArtifactMissingError):
        eprint("Please ensure the package was installed correctly (try: yutu-mcp-install).")
    eprint(f"You may need to download the binary manually from: {RELEASES_PAGE}")
