"""Provisioning orchestration.

Walks the categories in a fixed order, asks each category's plan
builder for its installers, and runs them one after another. A failing
tool is recorded and the walk carries on; the only way to stop a run is
the missing-component precondition checked before anything happens.
"""

from __future__ import annotations

import shutil
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from devsetup.core.errors import ErrorKind, ProvisionError
from devsetup.core.result import Err, Ok, Result
from devsetup.platform.files import remove_tree
from devsetup.services.publish import TEMPLATES
from devsetup.tools.base import Category, InstallStatus, ProvisioningResult
from devsetup.tools.catalog import PLAN_BUILDERS, data_dir

if TYPE_CHECKING:
    from devsetup.core.options import DesiredState
    from devsetup.services.verify import CheckResult
    from devsetup.tools.base import InstallContext
    from devsetup.tools.catalog import PlanBuilder, ToolCatalog

__all__ = ["CATEGORY_ORDER", "ProvisioningOrchestrator", "RunReport"]

# Version control first: later categories (editor wiring, shortcuts) use it
CATEGORY_ORDER: tuple[Category, ...] = (
    Category.VERSION_CONTROL,
    Category.TERMINAL,
    Category.EDITORS,
    Category.CLI_TOOLS,
    Category.LANGUAGES,
)


@dataclass(frozen=True, slots=True)
class RunReport:
    results: tuple[ProvisioningResult, ...] = ()
    skipped: tuple[Category, ...] = ()
    checks: tuple[CheckResult, ...] = ()

    def _with(self, status: InstallStatus) -> list[ProvisioningResult]:
        return [r for r in self.results if r.status is status]

    @property
    def installed(self) -> list[ProvisioningResult]:
        return self._with(InstallStatus.INSTALLED)

    @property
    def already_present(self) -> list[ProvisioningResult]:
        return self._with(InstallStatus.ALREADY_PRESENT)

    @property
    def failed(self) -> list[ProvisioningResult]:
        return self._with(InstallStatus.FAILED)

    def for_category(self, category: Category) -> list[ProvisioningResult]:
        return [r for r in self.results if r.category is category]

    def result_for(self, tool: str) -> ProvisioningResult | None:
        for result in self.results:
            if result.tool == tool:
                return result
        return None

    def with_checks(self, checks: list[CheckResult]) -> RunReport:
        return replace(self, checks=tuple(checks))


class ProvisioningOrchestrator:
    def __init__(
        self,
        ctx: InstallContext,
        catalog: ToolCatalog,
        builders: Mapping[Category, PlanBuilder] = PLAN_BUILDERS,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            ctx: Collaborators shared by every installer
            catalog: Pinned download locations
            builders: Plan builder per category; every entry of
                CATEGORY_ORDER must be present
        """
        self._ctx = ctx
        self._catalog = catalog
        self._builders = dict(builders)

    def check_components(self) -> Result[None, ProvisionError]:
        missing = [c for c in CATEGORY_ORDER if c not in self._builders]
        if not missing:
            return Ok(None)
        return Err(
            ProvisionError(
                ErrorKind.MISSING_COMPONENT,
                f"Missing {len(missing)} required component(s). Cannot continue.",
                ", ".join(str(c) for c in missing),
            )
        )

    def prepare(self) -> None:
        layout = self._ctx.layout
        self._ctx.console.info("Ensuring directory structure exists...")
        layout.ensure()
        self.seed_templates()
        self._ctx.console.success("Directory structure created")

    def seed_templates(self) -> list[str]:
        """Copy profile templates into scripts/config unless already there.

        Later runs read the installed copies, so local edits survive.
        """
        seeded: list[str] = []
        config_dir = self._ctx.layout.config_dir
        config_dir.mkdir(parents=True, exist_ok=True)
        for name in TEMPLATES:
            target = config_dir / name
            if target.exists():
                continue
            shutil.copyfile(data_dir() / name, target)
            seeded.append(name)
        return seeded

    def run(self, state: DesiredState) -> Result[RunReport, ProvisionError]:
        console = self._ctx.console

        checked = self.check_components()
        if isinstance(checked, Err):
            console.error(checked.error.message)
            if checked.error.detail:
                console.error(f"Missing plan for: {checked.error.detail}")
            return checked

        self.prepare()

        results: list[ProvisioningResult] = []
        skipped: list[Category] = []
        for category in CATEGORY_ORDER:
            plan = self._builders[category](state, self._catalog)
            if not plan.enabled:
                console.info(f"{category.label} installation disabled in options, skipping")
                skipped.append(category)
                continue

            console.header(category.label)
            for name in plan.skipped:
                console.info(f"{name} installation disabled in options, skipping")
            for installer in plan.installers:
                results.append(installer.ensure_installed(self._ctx))

        if remove_tree(self._ctx.layout.temp_dir):
            console.info("Cleaned up temporary files")

        report = RunReport(results=tuple(results), skipped=tuple(skipped))
        self._summarize(report)
        return Ok(report)

    def _summarize(self, report: RunReport) -> None:
        console = self._ctx.console
        console.newline()
        console.info(
            f"{len(report.installed)} installed, "
            f"{len(report.already_present)} already present, "
            f"{len(report.failed)} failed"
        )
        for result in report.failed:
            console.warning(f"{result.tool}: {result.error}")
