"""
Interactive Google Cloud setup for the YouTube Data API.

Walks the operator through the console pages in their browser, then installs
the downloaded OAuth client secret where the yutu binary expects it and
prints the Claude Desktop configuration.

Run via `yutu-mcp setup` (or `python -m yutu_mcp.setup_wizard`).
"""

from __future__ import annotations

import argparse
import json
import shutil
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from platformdirs import user_downloads_dir

from .cache import get_config_dir
from .platforms import HostContext
from .util import safe_print

CREDENTIAL_FILENAME = "client_secret.json"
TOKEN_FILENAME = "youtube.token.json"

OAUTH_CLIENT_NAME = "yutu-mcp-client"
OAUTH_REDIRECT_URI = "http://localhost:8216"

CONSOLE_URL = "https://console.cloud.google.com/"
API_LIBRARY_URL = "https://console.cloud.google.com/apis/library/youtube.googleapis.com"
CREDENTIALS_URL = "https://console.cloud.google.com/apis/credentials"

# Exit status for an aborted prompt (Ctrl-C / Ctrl-D).
_ABORTED = 130


class SetupError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class WizardStep:
    title: str
    url: str
    instructions: tuple[str, ...]


STEPS: tuple[WizardStep, ...] = (
    WizardStep(
        title="Sign in to Google Cloud Console and create or select a project",
        url=CONSOLE_URL,
        instructions=(
            "Sign in to your Google account.",
            "Create a new project or select an existing one.",
        ),
    ),
    WizardStep(
        title="Enable YouTube Data API v3",
        url=API_LIBRARY_URL,
        instructions=(
            'Click "ENABLE" (if you see "MANAGE", the API is already enabled).',
        ),
    ),
    WizardStep(
        title="Create OAuth 2.0 credentials",
        url=CREDENTIALS_URL,
        instructions=(
            'If prompted, click "CONFIGURE CONSENT SCREEN":',
            '  choose "External", app name "yutu-mcp",',
            "  add your email as support and developer contact,",
            "  save through all steps and add yourself as a test user.",
            'Click "CREATE CREDENTIALS" -> "OAuth client ID".',
            'Application type: "Web application".',
            f'Name: "{OAUTH_CLIENT_NAME}".',
            f'Authorized redirect URI: "{OAUTH_REDIRECT_URI}".',
            'Click "CREATE", then "DOWNLOAD JSON" in the popup.',
        ),
    ),
)


def find_downloaded_secret(search_dir: Path) -> Path | None:
    """Newest client_secret*.json in search_dir, if any."""
    if not search_dir.is_dir():
        return None
    candidates = [p for p in search_dir.glob("client_secret*.json") if p.is_file()]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)


def load_client_secret(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise SetupError(f"Credentials file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise SetupError(f"Credentials file unreadable: {path}") from e
    except json.JSONDecodeError as e:
        raise SetupError(f"Credentials file is not valid JSON: {path}") from e

    if not isinstance(data, dict):
        raise SetupError(f"Credentials file must be a JSON object: {path}")

    client = data.get("web") or data.get("installed")
    if not isinstance(client, dict) or "client_id" not in client:
        raise SetupError(
            f"Not an OAuth client secret (expected a 'web' or 'installed' client): {path}"
        )
    return data


def install_client_secret(src: Path, config_dir: Path) -> Path:
    load_client_secret(src)

    config_dir.mkdir(parents=True, exist_ok=True)
    dest = config_dir / CREDENTIAL_FILENAME
    if src.resolve() != dest.resolve():
        shutil.copy2(src, dest)
    return dest


def claude_desktop_config(config_dir: Path) -> dict[str, Any]:
    return {
        "mcpServers": {
            "youtube": {
                "command": "yutu-mcp",
                "args": ["mcp"],
                "env": {
                    "YUTU_CREDENTIAL": str(config_dir / CREDENTIAL_FILENAME),
                    "YUTU_CACHE_TOKEN": str(config_dir / TOKEN_FILENAME),
                },
            }
        }
    }


def main(
    argv=None,
    *,
    ctx: HostContext | None = None,
    prompt: Callable[[str], str] = input,
    open_url: Callable[[str], Any] = webbrowser.open,
) -> int:
    parser = argparse.ArgumentParser(
        prog="yutu-mcp setup",
        description="Set up Google Cloud OAuth credentials for the YouTube Data API.",
    )
    parser.add_argument(
        "--credentials",
        type=Path,
        default=None,
        help="Install an already downloaded client secret JSON and skip the walkthrough",
    )
    parser.add_argument("--no-browser", action="store_true", help="Print URLs instead of opening them")
    args = parser.parse_args(argv)

    if ctx is None:
        ctx = HostContext.from_host()

    config_dir = get_config_dir(ctx)
    if not config_dir.exists():
        config_dir.mkdir(parents=True, exist_ok=True)
        safe_print(f"Created directory: {config_dir}")

    try:
        if args.credentials is not None:
            src: Path | None = args.credentials.expanduser()
        else:
            _walkthrough(prompt, open_url, browser=not args.no_browser)
            src = _ask_for_secret(prompt)
    except (KeyboardInterrupt, EOFError):
        safe_print("\nSetup aborted.")
        return _ABORTED

    if src is None:
        safe_print("\nCredentials file not found.")
        safe_print("Please move your downloaded credentials to:")
        safe_print(f"  {config_dir / CREDENTIAL_FILENAME}")
        return 1

    try:
        dest = install_client_secret(src, config_dir)
    except (SetupError, OSError) as e:
        safe_print(f"\n{e}")
        return 1

    safe_print(f"\nCredentials saved to: {dest}")
    safe_print("Authentication will happen automatically on first use.")
    safe_print("\nSetup complete!")
    safe_print("\nAdd this to your Claude Desktop configuration (claude_desktop_config.json):\n")
    safe_print(json.dumps(claude_desktop_config(config_dir), indent=2))
    safe_print("\nThen restart Claude Desktop and try: \"List my YouTube videos\"")
    return 0


def _walkthrough(
    prompt: Callable[[str], str],
    open_url: Callable[[str], Any],
    *,
    browser: bool,
) -> None:
    safe_print("Setup steps:")
    for i, step in enumerate(STEPS, start=1):
        safe_print(f"{i}. {step.title}")

    for i, step in enumerate(STEPS, start=1):
        safe_print(f"\nStep {i}: {step.title}")
        safe_print(f"  {step.url}")
        if browser:
            open_url(step.url)
        for line in step.instructions:
            safe_print(f"  {line}")
        prompt("Press Enter when done...")


def _ask_for_secret(prompt: Callable[[str], str]) -> Path | None:
    downloads = Path(user_downloads_dir())
    answer = prompt(
        f"\nPath to the downloaded JSON (Enter to search {downloads}): "
    ).strip()
    if answer:
        return Path(answer).expanduser()

    found = find_downloaded_secret(downloads)
    if found is not None:
        safe_print(f"Found: {found}")
    return found


if __name__ == "__main__":
    raise SystemExit(main())
