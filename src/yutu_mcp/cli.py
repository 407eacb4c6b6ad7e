from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .cache import get_cache_root
from .errors import ProvisionError
from .platforms import HostContext, describe_host, resolve_platform, to_artifact_descriptor
from .provision import ensure_installed, is_installed
from .release import RELEASES_PAGE, configured_version
from .shim import run
from .util import eprint, safe_print


def main(argv=None) -> int:
    """`yutu-mcp`: forward everything to the native binary (or `setup`)."""
    args = sys.argv[1:] if argv is None else list(argv)
    return run(args)


def install_main(argv=None, *, ctx: HostContext | None = None) -> int:
    """`yutu-mcp-install`: download the native binary ahead of first use."""
    parser = argparse.ArgumentParser(
        prog="yutu-mcp-install",
        description="Download the prebuilt yutu binary for this platform.",
    )
    parser.add_argument("--force", action="store_true", help="Re-download even if already installed")
    parser.add_argument(
        "--version",
        default=None,
        help="Release version to fall back to, e.g. 0.9.8 (default: latest)",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Directory to install the binary into (default: <package>/binaries)",
    )
    args = parser.parse_args(argv)

    if ctx is None:
        ctx = HostContext.from_host()

    safe_print("Installing yutu MCP server...")
    safe_print(f"Platform: {describe_host(ctx)}")

    if ctx.is_ci() and not args.force:
        safe_print("CI environment detected, skipping download (use --force to override)")
        return 0

    try:
        key = resolve_platform(ctx)
        cache_dir = args.cache_dir.expanduser().resolve() if args.cache_dir else get_cache_root(ctx)
        descriptor = to_artifact_descriptor(key, cache_dir)

        if is_installed(descriptor) and not args.force:
            safe_print("Binary already exists, skipping download")
            safe_print(str(descriptor.local_path))
            return 0

        version = args.version or configured_version(ctx)
        path = ensure_installed(descriptor, version=version, force=args.force)
    except ProvisionError as e:
        eprint(f"Installation failed: {e}")
        eprint("You may need to download the binary manually from:")
        eprint(RELEASES_PAGE)
        return 1

    safe_print("Installation complete!")
    safe_print(str(path))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
