"""Shell profile and identity publishing.

Runs after every category has been provisioned. Profile and gitconfig
are regenerated from templates on every run (last run wins, no merge);
the PATH block in the paths fragment is appended once.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from devsetup.output.console import Style
from devsetup.platform.files import atomic_write_text, backup_with_timestamp
from devsetup.platform.shell import bash_path, render_template
from devsetup.tools.catalog import data_dir
from devsetup.tools.installers.git import git_root

if TYPE_CHECKING:
    from devsetup.core.options import DesiredState, GitUser
    from devsetup.output.console import ConsoleProtocol
    from devsetup.platform.paths import Layout
    from devsetup.platform.shell import ShellFragments

__all__ = ["EnvironmentPublisher", "PublishReport", "Prompt", "TEMPLATES"]

type Prompt = Callable[[str], str]

BASHRC_TEMPLATE = "bashrc.template"
GITCONFIG_TEMPLATE = "gitconfig.template"
TEMPLATES = (BASHRC_TEMPLATE, GITCONFIG_TEMPLATE)
FRAGMENT_SOURCES = ("aliases.sh", "functions.sh")


@dataclass(frozen=True, slots=True)
class PublishReport:
    profile: Path | None
    profile_backup: Path | None
    gitconfig: Path | None
    session_path: tuple[Path, ...]


class EnvironmentPublisher:
    """Writes the shell fragments, ~/.bashrc and ~/.gitconfig.

    Templates are read from the installed config directory
    (scripts/config), which the orchestrator seeds from package data.
    """

    def __init__(
        self,
        layout: Layout,
        fragments: ShellFragments,
        console: ConsoleProtocol,
        prompt: Prompt | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._layout = layout
        self._fragments = fragments
        self._console = console
        self._prompt = prompt or _no_prompt
        self._now = now

    def publish(self, state: DesiredState) -> PublishReport:
        self.write_fragments()
        profile, backup = self.write_profile()

        gitconfig: Path | None = None
        if state.git.configure:
            gitconfig = self.write_gitconfig(state.git.user)
        else:
            self._console.info("Git configuration is disabled in options, skipping")

        return PublishReport(
            profile=profile,
            profile_backup=backup,
            gitconfig=gitconfig,
            session_path=tuple(self.session_path()),
        )

    def write_fragments(self) -> None:
        if self._fragments.append_path_block([self._layout.bin_dir]):
            self._console.info(f"Added {self._layout.bin_dir} to {self._fragments.paths.name}")

        for name in FRAGMENT_SOURCES:
            target = self._layout.config_dir / name
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(data_dir() / name, target)

    def write_profile(self) -> tuple[Path | None, Path | None]:
        """Regenerate ~/.bashrc. Returns (profile, backup)."""
        self._console.info("Setting up .bashrc...")
        template = self._layout.config_dir / BASHRC_TEMPLATE
        if not template.is_file():
            self._console.error(f"{BASHRC_TEMPLATE} not found in {self._layout.config_dir}")
            return None, None

        profile = self._layout.profile
        backup = backup_with_timestamp(profile, now=self._now())
        if backup is not None:
            self._console.info(f"Backed up existing .bashrc to {backup.name}")

        content = render_template(
            template.read_text(encoding="utf-8", errors="replace"),
            {"CONFIG_DIR": bash_path(self._layout.config_dir)},
        )
        atomic_write_text(profile, content)
        self._console.success("Updated .bashrc")
        return profile, backup

    def git_editor(self) -> str:
        """Preferred editor: Sublime Text, then Notepad++, then vim."""
        sublime = self._layout.tool_dir("sublime_text") / "sublime_text.exe"
        if sublime.is_file():
            return f"'{bash_path(sublime)}' -w"
        notepad = self._layout.tool_dir("notepad++") / "notepad++.exe"
        if notepad.is_file():
            return f"'{bash_path(notepad)}' -multiInst -notabbar -nosession -noPlugin"
        return "vim"

    def credential_helper(self) -> str:
        manager = (
            git_root(self._layout)
            / "mingw64"
            / "libexec"
            / "git-core"
            / "git-credential-manager.exe"
        )
        return "manager" if manager.is_file() else "cache"

    def write_gitconfig(self, user: GitUser) -> Path | None:
        self._console.info("Setting up Git config...")
        template = self._layout.config_dir / GITCONFIG_TEMPLATE
        if not template.is_file():
            self._console.warning(f"{GITCONFIG_TEMPLATE} not found, skipping Git config setup")
            return None

        name = user.name or self._prompt("Please enter your Git user name:").strip()
        email = user.email or self._prompt("Please enter your Git email:").strip()
        if not name or not email:
            self._console.warning("Git user name or email is empty; edit ~/.gitconfig later")

        content = render_template(
            template.read_text(encoding="utf-8", errors="replace"),
            {
                "GIT_USER_NAME": name,
                "GIT_USER_EMAIL": email,
                "GIT_EDITOR": self.git_editor(),
                "GIT_CREDENTIAL_HELPER": self.credential_helper(),
            },
        )
        gitconfig = self._layout.gitconfig
        atomic_write_text(gitconfig, content)
        self._console.success("Git configuration complete")
        self._console.print(f"  editor: {self.git_editor()}", Style.DIM)
        return gitconfig

    def session_path(self) -> list[Path]:
        """Directories to prepend to PATH for the current session (existing only)."""
        tools = self._layout.tools_dir
        candidates = [
            self._layout.bin_dir,
            tools / "git" / "bin",
            tools / "git" / "usr" / "bin",
            tools / "rust" / "bin",
        ]
        return [d for d in candidates if d.is_dir()]


def _no_prompt(question: str) -> str:
    return ""
