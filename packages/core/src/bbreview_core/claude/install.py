"""Claude CLI installation check.

Pipeline images rarely ship the CLI, so a run installs it on demand:
npm first (most images have Node), then the official install script.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

NPM_PACKAGE = "@anthropic-ai/claude-code"
INSTALL_SCRIPT = "curl -fsSL https://claude.ai/install.sh | sh"


def get_claude_version(claude_bin: str = "claude") -> str | None:
    try:
        result = subprocess.run(
            [claude_bin, "--version"],
            capture_output=True,
            text=True,
            timeout=10,
            check=False,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def is_claude_installed(claude_bin: str = "claude") -> bool:
    return get_claude_version(claude_bin) is not None


def _run_installer(args: list[str]) -> bool:
    try:
        return subprocess.run(args, check=False).returncode == 0
    except OSError as e:
        logger.debug("Installer %s could not start: %s", args[0], e)
        return False


def install_with_npm() -> bool:
    logger.info("Installing Claude CLI via npm...")
    return _run_installer(["npm", "install", "-g", NPM_PACKAGE])


def install_with_script() -> bool:
    logger.info("Installing Claude CLI via install script...")
    ok = _run_installer(["sh", "-c", INSTALL_SCRIPT])
    if ok:
        # The script installs into ~/.local/bin, which may not be on PATH yet.
        local_bin = str(Path.home() / ".local" / "bin")
        os.environ["PATH"] = f"{local_bin}{os.pathsep}{os.environ.get('PATH', '')}"
    return ok


def ensure_claude_cli(claude_bin: str = "claude") -> bool:
    """Return True if the CLI is available, installing it first if needed."""
    version = get_claude_version(claude_bin)
    if version:
        logger.info("Claude CLI already installed: %s", version)
        return True

    logger.info("Claude CLI not found, attempting to install...")
    for installer in (install_with_npm, install_with_script):
        if installer() and is_claude_installed(claude_bin):
            logger.info("Claude CLI installed successfully: %s", get_claude_version(claude_bin))
            return True

    logger.error("Failed to install Claude CLI. Install it manually: npm install -g %s", NPM_PACKAGE)
    return False
