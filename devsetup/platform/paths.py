"""Destination tree layout.

Everything is installed under one user-writable root (default ~/dev):

    <root>/tools/bin                 entry points
    <root>/tools/<tool>[/<version>]  installed payloads
    <root>/tools/temp                scratch space, removed after a run
    <root>/code/{remote,local}
    <root>/scripts/config            options document, templates, fragments
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = ["Layout", "home", "default_root", "OPTIONS_FILENAME", "ROOT_ENV_VAR"]

ROOT_ENV_VAR = "DEVSETUP_ROOT"
OPTIONS_FILENAME = "dev_setup_options.json"


def home() -> Path:
    """User's home directory (USERPROFILE, then HOME, then Path.home())."""
    for var in ("USERPROFILE", "HOME"):
        value = os.environ.get(var)
        if value:
            return Path(value)
    return Path.home()


def default_root() -> Path:
    override = os.environ.get(ROOT_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return home() / "dev"


@dataclass(frozen=True, slots=True)
class Layout:
    root: Path
    home: Path

    @classmethod
    def default(cls) -> Layout:
        return cls(root=default_root(), home=home())

    @property
    def tools_dir(self) -> Path:
        return self.root / "tools"

    @property
    def bin_dir(self) -> Path:
        return self.tools_dir / "bin"

    @property
    def temp_dir(self) -> Path:
        return self.tools_dir / "temp"

    @property
    def code_dir(self) -> Path:
        return self.root / "code"

    @property
    def scripts_dir(self) -> Path:
        return self.root / "scripts"

    @property
    def config_dir(self) -> Path:
        return self.scripts_dir / "config"

    @property
    def options_file(self) -> Path:
        return self.config_dir / OPTIONS_FILENAME

    @property
    def profile(self) -> Path:
        return self.home / ".bashrc"

    @property
    def gitconfig(self) -> Path:
        return self.home / ".gitconfig"

    def tool_dir(self, name: str, version: str | None = None) -> Path:
        base = self.tools_dir / name
        return base / version if version else base

    def ensure(self) -> None:
        """Create the directory skeleton. Safe to call repeatedly."""
        for path in (
            self.bin_dir,
            self.temp_dir,
            self.code_dir / "remote",
            self.code_dir / "local",
            self.config_dir,
        ):
            path.mkdir(parents=True, exist_ok=True)
