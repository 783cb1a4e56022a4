"""Tool catalog and per-category installation plans.

The catalog is package data (data/tools.toml): every pinned download
location lives there so a release can bump a tool without touching
code. Plan builders combine the catalog with the resolved DesiredState
into the ordered list of installers for one category.
"""

from __future__ import annotations

import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.options import DesiredState, RuntimeOptions
from devsetup.core.result import Err, Ok, Result
from devsetup.core.structured import as_str_dict, get_list, get_str, get_table
from devsetup.tools.base import Category, ToolInstaller
from devsetup.tools.installers import (
    ArchiveBinaryInstaller,
    BinaryInstaller,
    GitInstaller,
    NodeInstaller,
    PortableAppInstaller,
    PythonInstaller,
    RustInstaller,
    SdkmanInstaller,
    TerminalInstaller,
)
from devsetup.tools.installers.git import BOOTSTRAP_HINT

__all__ = [
    "PLAN_BUILDERS",
    "CategoryPlan",
    "CliToolSpec",
    "EditorSpec",
    "PlanBuilder",
    "ToolCatalog",
    "data_dir",
]


def data_dir() -> Path:
    return Path(__file__).parent.parent / "data"


@dataclass(frozen=True, slots=True)
class CliToolSpec:
    """A CLI utility. Empty `binaries` means the URL is the executable itself."""

    name: str
    url: str
    binaries: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class EditorSpec:
    name: str
    url: str
    directory: str
    exe: str
    alias: str


@dataclass(frozen=True, slots=True)
class ToolCatalog:
    git_bootstrap_hint: str
    terminal_url: str
    editors: tuple[EditorSpec, ...]
    cli_tools: tuple[CliToolSpec, ...]
    node_url: str
    python_url: str
    get_pip_url: str
    rustup_init_url: str
    sdkman_installer_url: str

    @classmethod
    def default_path(cls) -> Path:
        return data_dir() / "tools.toml"

    @classmethod
    def load(cls, path: Path | None = None) -> Result[ToolCatalog, ProvisionError]:
        """Load and validate the catalog.

        Any problem is MISSING_COMPONENT: without its catalog the program
        cannot provision anything.
        """
        path = path or cls.default_path()
        try:
            with path.open("rb") as f:
                data_obj: object = tomllib.load(f)
        except OSError as e:
            return Err(_missing(f"Tool catalog not found: {path}", str(e)))
        except tomllib.TOMLDecodeError as e:
            return Err(_missing(f"Invalid tool catalog: {path}", str(e)))

        data = as_str_dict(data_obj) or {}
        problems: list[str] = []
        req = _Required(problems)

        git = req.table(data, "git")
        terminal = req.table(data, "terminal")
        languages = req.table(data, "languages")
        node = req.table(languages, "node", "languages.")
        python = req.table(languages, "python", "languages.")
        rust = req.table(languages, "rust", "languages.")
        sdkman = req.table(languages, "sdkman", "languages.")

        editors: list[EditorSpec] = []
        for i, item in enumerate(req.records(data, "editors")):
            where = f"editors[{i}]."
            editors.append(
                EditorSpec(
                    name=req.text(item, "name", where),
                    url=req.text(item, "url", where),
                    directory=req.text(item, "directory", where),
                    exe=req.text(item, "exe", where),
                    alias=req.text(item, "alias", where),
                )
            )

        cli_tools: list[CliToolSpec] = []
        for i, item in enumerate(req.records(data, "cli_tools")):
            where = f"cli_tools[{i}]."
            binaries = tuple(b for b in (get_list(item, "binaries") or []) if isinstance(b, str))
            cli_tools.append(
                CliToolSpec(
                    name=req.text(item, "name", where),
                    url=req.text(item, "url", where),
                    binaries=binaries,
                )
            )

        catalog = cls(
            git_bootstrap_hint=get_str(git, "bootstrap_hint") or "",
            terminal_url=req.text(terminal, "url", "terminal."),
            editors=tuple(editors),
            cli_tools=tuple(cli_tools),
            node_url=req.text(node, "url", "languages.node."),
            python_url=req.text(python, "url", "languages.python."),
            get_pip_url=req.text(python, "get_pip_url", "languages.python."),
            rustup_init_url=req.text(rust, "rustup_init_url", "languages.rust."),
            sdkman_installer_url=req.text(sdkman, "installer_url", "languages.sdkman."),
        )

        if problems:
            return Err(_missing(f"Incomplete tool catalog: {path}", "; ".join(problems)))
        return Ok(catalog)


def _missing(message: str, detail: str) -> ProvisionError:
    return ProvisionError(ErrorKind.MISSING_COMPONENT, message, detail)


class _Required:
    def __init__(self, problems: list[str]) -> None:
        self.problems = problems

    def table(
        self, parent: Mapping[str, object], key: str, where: str = ""
    ) -> Mapping[str, object]:
        value = get_table(parent, key)
        if value is None:
            self.problems.append(f"missing [{where}{key}]")
            return {}
        return value

    def records(self, parent: Mapping[str, object], key: str) -> list[Mapping[str, object]]:
        items = get_list(parent, key)
        if items is None:
            self.problems.append(f"missing [[{key}]]")
            return []
        records: list[Mapping[str, object]] = []
        for item in items:
            record = as_str_dict(item)
            if record is None:
                self.problems.append(f"{key}: expected tables")
                continue
            records.append(record)
        return records

    def text(self, parent: Mapping[str, object], key: str, where: str = "") -> str:
        value = get_str(parent, key)
        if value is None:
            self.problems.append(f"missing {where}{key}")
            return ""
        return value


@dataclass(frozen=True, slots=True)
class CategoryPlan:
    """Installers for one category, in execution order.

    A disabled category carries the reason instead of installers.
    """

    installers: tuple[ToolInstaller, ...] = ()
    skipped: tuple[str, ...] = ()
    disabled_reason: str | None = None

    @property
    def enabled(self) -> bool:
        return self.disabled_reason is None

    @classmethod
    def disabled(cls, reason: str) -> CategoryPlan:
        return cls(disabled_reason=reason)


type PlanBuilder = Callable[[DesiredState, ToolCatalog], CategoryPlan]


def plan_version_control(state: DesiredState, catalog: ToolCatalog) -> CategoryPlan:
    hint = catalog.git_bootstrap_hint or BOOTSTRAP_HINT
    return CategoryPlan(installers=(GitInstaller(hint),))


def plan_terminal(state: DesiredState, catalog: ToolCatalog) -> CategoryPlan:
    if not state.terminal.install:
        return CategoryPlan.disabled("terminal.install is false")
    return CategoryPlan(installers=(TerminalInstaller(catalog.terminal_url),))


def plan_editors(state: DesiredState, catalog: ToolCatalog) -> CategoryPlan:
    if not state.editors.install:
        return CategoryPlan.disabled("editors.install is false")
    return CategoryPlan(
        installers=tuple(
            PortableAppInstaller(e.name, e.url, e.directory, e.exe, e.alias)
            for e in catalog.editors
        )
    )


def plan_cli_tools(state: DesiredState, catalog: ToolCatalog) -> CategoryPlan:
    if not state.cli_tools.install:
        return CategoryPlan.disabled("cli_tools.install is false")
    installers: list[ToolInstaller] = []
    for tool in catalog.cli_tools:
        if tool.binaries:
            installers.append(ArchiveBinaryInstaller(tool.name, tool.url, tool.binaries))
        else:
            installers.append(BinaryInstaller(tool.name, tool.url))
    return CategoryPlan(installers=tuple(installers))


def _runtime_installers(
    runtime: RuntimeOptions, build: Callable[[str, bool], ToolInstaller]
) -> list[ToolInstaller]:
    default = runtime.default_version
    return [
        build(entry.version, default is not None and entry is default)
        for entry in runtime.versions
    ]


def plan_languages(state: DesiredState, catalog: ToolCatalog) -> CategoryPlan:
    langs = state.languages
    if not langs.install:
        return CategoryPlan.disabled("languages.install is false")

    installers: list[ToolInstaller] = []
    skipped: list[str] = []

    if langs.node.install:
        installers += _runtime_installers(
            langs.node,
            lambda version, is_default: NodeInstaller(
                version, catalog.node_url, is_default=is_default
            ),
        )
    else:
        skipped.append("node")

    if langs.python.install:
        installers += _runtime_installers(
            langs.python,
            lambda version, is_default: PythonInstaller(
                version, catalog.python_url, catalog.get_pip_url, is_default=is_default
            ),
        )
    else:
        skipped.append("python")

    if langs.sdkman.install:
        installers.append(SdkmanInstaller(catalog.sdkman_installer_url, langs.sdkman.java))
    else:
        skipped.append("sdkman")

    if langs.rust.install:
        installers.append(RustInstaller(catalog.rustup_init_url))
    else:
        skipped.append("rust")

    return CategoryPlan(installers=tuple(installers), skipped=tuple(skipped))


PLAN_BUILDERS: dict[Category, PlanBuilder] = {
    Category.VERSION_CONTROL: plan_version_control,
    Category.TERMINAL: plan_terminal,
    Category.EDITORS: plan_editors,
    Category.CLI_TOOLS: plan_cli_tools,
    Category.LANGUAGES: plan_languages,
}
