from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

import yutu_mcp.setup_wizard as wizard
from yutu_mcp.platforms import HostContext
from yutu_mcp.setup_wizard import (
    STEPS,
    SetupError,
    claude_desktop_config,
    find_downloaded_secret,
    install_client_secret,
    load_client_secret,
    main,
)

SECRET = {
    "web": {
        "client_id": "123.apps.googleusercontent.com",
        "client_secret": "s3cret",
        "redirect_uris": ["http://localhost:8216"],
    }
}


def _ctx(config_dir: Path) -> HostContext:
    return HostContext(system="Linux", machine="x86_64", environ={"YUTU_MCP_CONFIG_DIR": str(config_dir)})


def _write_secret(path: Path, data: object = SECRET) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class Prompts:
    def __init__(self, answers: list[str]) -> None:
        self.answers = list(answers)
        self.asked: list[str] = []

    def __call__(self, message: str) -> str:
        self.asked.append(message)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


def test_credentials_flag_installs_secret(tmp_path: Path, capsys) -> None:
    src = _write_secret(tmp_path / "dl" / "client_secret_123.json")
    config = tmp_path / "config"

    rc = main(["--credentials", str(src)], ctx=_ctx(config))

    out = capsys.readouterr().out
    assert rc == 0
    assert json.loads((config / "client_secret.json").read_text(encoding="utf-8")) == SECRET
    assert "Setup complete!" in out
    assert '"mcpServers"' in out


def test_walkthrough_opens_each_page_and_uses_given_path(tmp_path: Path) -> None:
    src = _write_secret(tmp_path / "secret.json")
    opened: list[str] = []
    prompts = Prompts([""] * len(STEPS) + [str(src)])

    rc = main([], ctx=_ctx(tmp_path / "config"), prompt=prompts, open_url=opened.append)

    assert rc == 0
    assert opened == [s.url for s in STEPS]
    assert len(prompts.asked) == len(STEPS) + 1
    assert (tmp_path / "config" / "client_secret.json").exists()


def test_no_browser_only_prints_urls(tmp_path: Path, capsys) -> None:
    src = _write_secret(tmp_path / "secret.json")
    prompts = Prompts([""] * len(STEPS) + [str(src)])

    rc = main(
        ["--no-browser"],
        ctx=_ctx(tmp_path / "config"),
        prompt=prompts,
        open_url=lambda url: pytest.fail("must not open a browser"),
    )

    assert rc == 0
    assert "console.cloud.google.com/apis/credentials" in capsys.readouterr().out


def test_empty_answer_searches_downloads(tmp_path: Path, monkeypatch) -> None:
    downloads = tmp_path / "Downloads"
    older = _write_secret(downloads / "client_secret_old.json", {"installed": {"client_id": "old"}})
    newer = _write_secret(downloads / "client_secret_new.json")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))
    monkeypatch.setattr(wizard, "user_downloads_dir", lambda: str(downloads))

    rc = main([], ctx=_ctx(tmp_path / "config"), prompt=Prompts([""] * (len(STEPS) + 1)), open_url=lambda u: None)

    assert rc == 0
    installed = json.loads((tmp_path / "config" / "client_secret.json").read_text(encoding="utf-8"))
    assert installed == SECRET


def test_nothing_found_exits_1(tmp_path: Path, monkeypatch, capsys) -> None:
    monkeypatch.setattr(wizard, "user_downloads_dir", lambda: str(tmp_path / "empty"))

    rc = main([], ctx=_ctx(tmp_path / "config"), prompt=Prompts([""] * (len(STEPS) + 1)), open_url=lambda u: None)

    assert rc == 1
    assert "Credentials file not found" in capsys.readouterr().out


def test_eof_at_prompt_aborts(tmp_path: Path) -> None:
    rc = main([], ctx=_ctx(tmp_path / "config"), prompt=Prompts([]), open_url=lambda u: None)
    assert rc == 130


def test_invalid_secret_exits_1(tmp_path: Path, capsys) -> None:
    src = _write_secret(tmp_path / "secret.json", {"type": "service_account"})

    rc = main(["--credentials", str(src)], ctx=_ctx(tmp_path / "config"))

    assert rc == 1
    assert "Not an OAuth client secret" in capsys.readouterr().out
    assert not (tmp_path / "config" / "client_secret.json").exists()


@pytest.mark.parametrize("content", ["not json", "[]", '{"web": {}}'])
def test_load_client_secret_rejects(tmp_path: Path, content: str) -> None:
    p = tmp_path / "c.json"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(SetupError):
        _ = load_client_secret(p)


def test_load_client_secret_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SetupError, match="not found"):
        _ = load_client_secret(tmp_path / "nope.json")


def test_install_client_secret_in_place(tmp_path: Path) -> None:
    dest = _write_secret(tmp_path / "client_secret.json")
    assert install_client_secret(dest, tmp_path) == dest


def test_find_downloaded_secret_none(tmp_path: Path) -> None:
    assert find_downloaded_secret(tmp_path / "missing") is None
    assert find_downloaded_secret(tmp_path) is None


def test_claude_desktop_config_points_at_config_dir(tmp_path: Path) -> None:
    env = claude_desktop_config(tmp_path)["mcpServers"]["youtube"]["env"]
    assert env == {
        "YUTU_CREDENTIAL": str(tmp_path / "client_secret.json"),
        "YUTU_CACHE_TOKEN": str(tmp_path / "youtube.token.json"),
    }
