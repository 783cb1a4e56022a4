from __future__ import annotations

from pathlib import Path

import typer

from devsetup import __version__
from devsetup.cli.context import CLIContext, build_context
from devsetup.core.errors import ExitCode
from devsetup.core.resolver import OptionsResolver, PathQuery
from devsetup.core.result import Err
from devsetup.services.provision import ProvisioningOrchestrator, RunReport
from devsetup.services.publish import EnvironmentPublisher, Prompt
from devsetup.services.verify import VerificationReporter
from devsetup.tools.catalog import ToolCatalog

app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    help="Provision a portable developer environment under ~/dev.",
)


def _prompt(question: str) -> str:
    return typer.prompt(question, default="", show_default=False)


def run_setup(
    ctx: CLIContext,
    options_file: Path | None = None,
    prompt: Prompt = _prompt,
    catalog_path: Path | None = None,
) -> tuple[ExitCode, RunReport | None]:
    """Full run: options, provisioning, profile publishing, verification.

    Returns the exit code and, when provisioning ran, the report with
    verification checks attached.
    """
    console = ctx.console
    layout = ctx.layout
    console.info("Starting developer environment setup...")

    catalog = ToolCatalog.load(catalog_path)
    if isinstance(catalog, Err):
        console.error(str(catalog.error))
        return ExitCode.MISSING_COMPONENT, None

    options_path = options_file or layout.options_file
    state = OptionsResolver(console, PathQuery()).load(options_path)

    install_ctx = ctx.install_context()
    provisioned = ProvisioningOrchestrator(install_ctx, catalog.value).run(state)
    if isinstance(provisioned, Err):
        return ExitCode.MISSING_COMPONENT, None

    publisher = EnvironmentPublisher(layout, install_ctx.fragments, console, prompt=prompt)
    try:
        session_path = publisher.publish(state).session_path
    except OSError as e:
        console.error(f"Failed to update shell profile: {e}")
        session_path = tuple(publisher.session_path())

    checks = VerificationReporter(layout, ctx.runner, console, search_path=session_path).report()
    report = provisioned.value.with_checks(checks)

    console.newline()
    console.info(f"Setup complete! To customize tool installations, edit {options_path}")
    console.info("And then run this program again to apply changes.")
    console.success("Developer environment setup complete!")
    console.info("Please start a new Git Bash session to use your new environment.")
    return ExitCode.OK, report


@app.command()
def setup(
    options_file: Path | None = typer.Option(
        None,
        "--options-file",
        help="Options document (default: <root>/scripts/config/dev_setup_options.json)",
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Install and configure every tool enabled in the options document."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ExitCode.OK))

    code, _ = run_setup(build_context(), options_file)
    raise typer.Exit(code=int(code))


def main() -> None:
    app()
