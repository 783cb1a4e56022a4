"""Shell profile fragments.

The generated ~/.bashrc sources three fragments kept beside the options
document:

    scripts/config/paths.sh      PATH additions and tool init blocks
    scripts/config/aliases.sh    alias definitions
    scripts/config/functions.sh  shell functions

paths.sh is append-only: every block is guarded by a marker substring
and is written only if the marker is not already present, so re-running
never duplicates an initialisation block. The other two are copied from
templates and overwritten on every run.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from pathlib import Path

__all__ = ["ShellFragments", "bash_path", "render_template"]

PATH_BLOCK_MARKER = "# devsetup: PATH additions"

_DRIVE = re.compile(r"^([A-Za-z]):[\\/]")
_PLACEHOLDER = re.compile(r"\{\{([A-Z_]+)\}\}")


def bash_path(path: Path | str) -> str:
    """Render a path the way Git Bash expects it (C:\\x\\y -> /c/x/y)."""
    text = str(path)
    match = _DRIVE.match(text)
    if match:
        text = f"/{match.group(1).lower()}/{text[match.end():]}"
    return text.replace("\\", "/")


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Substitute {{NAME}} placeholders. Unknown placeholders are left as-is."""

    def _sub(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(_sub, template)


class ShellFragments:
    def __init__(self, config_dir: Path) -> None:
        self._config_dir = config_dir

    @property
    def paths(self) -> Path:
        return self._config_dir / "paths.sh"

    @property
    def aliases(self) -> Path:
        return self._config_dir / "aliases.sh"

    @property
    def functions(self) -> Path:
        return self._config_dir / "functions.sh"

    def all(self) -> tuple[Path, Path, Path]:
        return (self.paths, self.aliases, self.functions)

    def contains(self, marker: str) -> bool:
        if not self.paths.is_file():
            return False
        return marker in self.paths.read_text(encoding="utf-8", errors="replace")

    def append_block(self, marker: str, title: str, lines: Iterable[str]) -> bool:
        """Append an initialisation block to paths.sh unless marker is present.

        Returns:
            True if the block was written, False if it was already there.
        """
        if self.contains(marker):
            return False

        self.paths.parent.mkdir(parents=True, exist_ok=True)
        body = "\n".join(["", f"# {title}", *lines]) + "\n"
        with self.paths.open("a", encoding="utf-8", newline="\n") as handle:
            handle.write(body)
        return True

    def append_path_block(self, directories: Iterable[Path]) -> bool:
        lines = [f'export PATH="{bash_path(d)}:$PATH"' for d in directories]
        return self.append_block(PATH_BLOCK_MARKER, PATH_BLOCK_MARKER.lstrip("# "), lines)
