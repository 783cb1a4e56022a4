"""Typed desired-state schema for the options document.

The options document is JSON keyed by tool category. It is validated
once, here, into frozen dataclasses; the rest of the code only sees
typed accessors. Missing keys take their documented default and
mistyped values take the default too, with a note in `issues`.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field

from .structured import StrDict, as_str_dict, get_bool, get_list, get_str, get_table

__all__ = [
    "DEFAULT_OPTIONS",
    "DesiredState",
    "GitOptions",
    "GitUser",
    "JavaOptions",
    "LanguagesOptions",
    "ParsedOptions",
    "RuntimeOptions",
    "SdkmanOptions",
    "Toggle",
    "VersionEntry",
    "default_document",
    "parse_options",
]

DEFAULT_NODE_VERSION = "18.16.1"
DEFAULT_PYTHON_VERSION = "3.11.4"
DEFAULT_JAVA_VERSION = "17.0.8-tem"

DEFAULT_OPTIONS: StrDict = {
    "cli_tools": {"install": True},
    "languages": {
        "install": True,
        "node": {
            "install": True,
            "versions": [{"version": DEFAULT_NODE_VERSION, "default": True}],
        },
        "python": {
            "install": True,
            "versions": [{"version": DEFAULT_PYTHON_VERSION, "default": True}],
        },
        "rust": {"install": True},
        "sdkman": {
            "install": True,
            "java": {"install": False, "version": DEFAULT_JAVA_VERSION},
        },
    },
    "editors": {"install": True},
    "terminal": {"install": True},
    "git": {"configure": True, "user": {"name": "", "email": ""}},
}


def default_document() -> StrDict:
    """Return a fresh copy of the built-in options document."""
    return copy.deepcopy(DEFAULT_OPTIONS)


@dataclass(frozen=True, slots=True)
class Toggle:
    install: bool = True


@dataclass(frozen=True, slots=True)
class VersionEntry:
    version: str
    default: bool = False


def _default_node_versions() -> tuple[VersionEntry, ...]:
    return (VersionEntry(DEFAULT_NODE_VERSION, default=True),)


def _default_python_versions() -> tuple[VersionEntry, ...]:
    return (VersionEntry(DEFAULT_PYTHON_VERSION, default=True),)


@dataclass(frozen=True, slots=True)
class RuntimeOptions:
    """A multi-version runtime (node, python).

    At most one entry owns the unqualified entry points. The first entry
    marked default wins; with none marked, the first listed version does.
    """

    install: bool = True
    versions: tuple[VersionEntry, ...] = ()

    @property
    def default_version(self) -> VersionEntry | None:
        for entry in self.versions:
            if entry.default:
                return entry
        return self.versions[0] if self.versions else None


@dataclass(frozen=True, slots=True)
class JavaOptions:
    install: bool = False
    version: str = DEFAULT_JAVA_VERSION


@dataclass(frozen=True, slots=True)
class SdkmanOptions:
    install: bool = True
    java: JavaOptions = field(default_factory=JavaOptions)


@dataclass(frozen=True, slots=True)
class LanguagesOptions:
    install: bool = True
    node: RuntimeOptions = field(
        default_factory=lambda: RuntimeOptions(versions=_default_node_versions())
    )
    python: RuntimeOptions = field(
        default_factory=lambda: RuntimeOptions(versions=_default_python_versions())
    )
    rust: Toggle = field(default_factory=Toggle)
    sdkman: SdkmanOptions = field(default_factory=SdkmanOptions)


@dataclass(frozen=True, slots=True)
class GitUser:
    name: str = ""
    email: str = ""


@dataclass(frozen=True, slots=True)
class GitOptions:
    configure: bool = True
    user: GitUser = field(default_factory=GitUser)


@dataclass(frozen=True, slots=True)
class DesiredState:
    """Resolved desired state. Loaded once per run, immutable thereafter."""

    cli_tools: Toggle = field(default_factory=Toggle)
    languages: LanguagesOptions = field(default_factory=LanguagesOptions)
    editors: Toggle = field(default_factory=Toggle)
    terminal: Toggle = field(default_factory=Toggle)
    git: GitOptions = field(default_factory=GitOptions)

    @classmethod
    def default(cls) -> DesiredState:
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> DesiredState:
        return parse_options(data).state

    def to_dict(self) -> StrDict:
        """Serialise back to the options document shape."""
        langs = self.languages
        return {
            "cli_tools": {"install": self.cli_tools.install},
            "languages": {
                "install": langs.install,
                "node": _runtime_to_dict(langs.node),
                "python": _runtime_to_dict(langs.python),
                "rust": {"install": langs.rust.install},
                "sdkman": {
                    "install": langs.sdkman.install,
                    "java": {
                        "install": langs.sdkman.java.install,
                        "version": langs.sdkman.java.version,
                    },
                },
            },
            "editors": {"install": self.editors.install},
            "terminal": {"install": self.terminal.install},
            "git": {
                "configure": self.git.configure,
                "user": {"name": self.git.user.name, "email": self.git.user.email},
            },
        }


def _runtime_to_dict(runtime: RuntimeOptions) -> StrDict:
    return {
        "install": runtime.install,
        "versions": [{"version": v.version, "default": v.default} for v in runtime.versions],
    }


@dataclass(frozen=True, slots=True)
class ParsedOptions:
    state: DesiredState
    issues: tuple[str, ...] = ()


class _Reader:
    """Reads typed fields and records every value that had to be defaulted."""

    def __init__(self) -> None:
        self.issues: list[str] = []

    def table(self, parent: Mapping[str, object], key: str, path: str) -> StrDict:
        if key not in parent or parent[key] is None:
            return {}
        value = get_table(parent, key)
        if value is None:
            self.issues.append(f"{path}.{key}: expected an object")
            return {}
        return value

    def flag(self, parent: Mapping[str, object], key: str, path: str, default: bool) -> bool:
        if key not in parent or parent[key] is None:
            return default
        value = get_bool(parent, key)
        if value is None:
            self.issues.append(f"{path}.{key}: expected true or false")
            return default
        return value

    def text(self, parent: Mapping[str, object], key: str, path: str, default: str) -> str:
        if key not in parent or parent[key] is None:
            return default
        if not isinstance(parent[key], str):
            self.issues.append(f"{path}.{key}: expected a string")
            return default
        return get_str(parent, key) or default

    def runtime(
        self,
        parent: Mapping[str, object],
        key: str,
        path: str,
        default_versions: tuple[VersionEntry, ...],
    ) -> RuntimeOptions:
        node = self.table(parent, key, path)
        here = f"{path}.{key}"
        install = self.flag(node, "install", here, True)

        if "versions" not in node or node["versions"] is None:
            return RuntimeOptions(install=install, versions=default_versions)

        raw = get_list(node, "versions")
        if raw is None:
            self.issues.append(f"{here}.versions: expected a list")
            return RuntimeOptions(install=install, versions=default_versions)

        entries: list[VersionEntry] = []
        for i, item in enumerate(raw):
            record = as_str_dict(item)
            version = get_str(record, "version") if record is not None else None
            if record is None or version is None:
                self.issues.append(f"{here}.versions[{i}]: expected {{version, default}}")
                continue
            is_default = self.flag(record, "default", f"{here}.versions[{i}]", False)
            entries.append(VersionEntry(version=version, default=is_default))

        if sum(1 for e in entries if e.default) > 1:
            self.issues.append(f"{here}.versions: more than one default, the first one wins")

        return RuntimeOptions(install=install, versions=tuple(entries))


def parse_options(data: Mapping[str, object]) -> ParsedOptions:
    """Validate a decoded options document into a DesiredState."""
    r = _Reader()

    cli = r.table(data, "cli_tools", "")
    langs = r.table(data, "languages", "")
    sdkman = r.table(langs, "sdkman", ".languages")
    java = r.table(sdkman, "java", ".languages.sdkman")
    rust = r.table(langs, "rust", ".languages")
    editors = r.table(data, "editors", "")
    terminal = r.table(data, "terminal", "")
    git = r.table(data, "git", "")
    user = r.table(git, "user", ".git")

    state = DesiredState(
        cli_tools=Toggle(install=r.flag(cli, "install", ".cli_tools", True)),
        languages=LanguagesOptions(
            install=r.flag(langs, "install", ".languages", True),
            node=r.runtime(langs, "node", ".languages", _default_node_versions()),
            python=r.runtime(langs, "python", ".languages", _default_python_versions()),
            rust=Toggle(install=r.flag(rust, "install", ".languages.rust", True)),
            sdkman=SdkmanOptions(
                install=r.flag(sdkman, "install", ".languages.sdkman", True),
                java=JavaOptions(
                    install=r.flag(java, "install", ".languages.sdkman.java", False),
                    version=r.text(
                        java, "version", ".languages.sdkman.java", DEFAULT_JAVA_VERSION
                    ),
                ),
            ),
        ),
        editors=Toggle(install=r.flag(editors, "install", ".editors", True)),
        terminal=Toggle(install=r.flag(terminal, "install", ".terminal", True)),
        git=GitOptions(
            configure=r.flag(git, "configure", ".git", True),
            user=GitUser(
                name=r.text(user, "name", ".git.user", ""),
                email=r.text(user, "email", ".git.user", ""),
            ),
        ),
    )
    return ParsedOptions(state=state, issues=tuple(r.issues))
