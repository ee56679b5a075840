"""Typer CLI entrypoint for droidpack."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from droidpack import __version__
from droidpack.core.config import Settings, get_settings
from droidpack.core.logging import configure_structlog
from droidpack.errors import PipelineError
from droidpack.executor.process import SubprocessExecutor, truncate_output
from droidpack.executor.types import ProcessExecutor
from droidpack.pipeline import service

app = typer.Typer(
    add_completion=False,
    help="Build Android APKs in a container and repackage them for store upload.",
    no_args_is_help=True,
)


def _make_executor() -> ProcessExecutor:
    return SubprocessExecutor()


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj["settings"]


def _executor(ctx: typer.Context) -> ProcessExecutor:
    return ctx.obj["executor"]


def _human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "K", "M", "G"):
        if value < 1024 or unit == "G":
            return f"{value:.0f}{unit}" if unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{size}B"


def _fail(exc: PipelineError) -> None:
    """Print a pipeline failure with its remediation hint and exit 1."""
    typer.secho(f"✗ {exc}", err=True, fg=typer.colors.RED)
    diagnostics = truncate_output(exc.stderr or exc.stdout, max_lines=20)
    if diagnostics:
        typer.echo(diagnostics, err=True)
    typer.echo(f"  Hint: {exc.remediation}", err=True)
    raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    project_root: Optional[Path] = typer.Option(
        None, "--project-root", "-C", help="Project directory (defaults to DROIDPACK_PROJECT_ROOT or cwd)."
    ),
    debug: bool = typer.Option(False, "--debug", help="Verbose logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON lines."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(f"droidpack {__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    overrides: dict = {}
    if project_root is not None:
        overrides["project_root"] = project_root
    if debug:
        overrides["debug"] = True
    if json_logs:
        overrides["json_logs"] = True
    settings = get_settings(**overrides)

    configure_structlog(debug=settings.debug, json_logs=settings.json_logs)
    ctx.obj = {"settings": settings, "executor": _make_executor()}


@app.command("setup")
def setup_command(ctx: typer.Context) -> None:
    """Check the container runtime and project, create output dirs, pull the image."""
    try:
        report = service.setup(_settings(ctx), _executor(ctx))
    except PipelineError as exc:
        _fail(exc)
    typer.echo(f"✓ Runtime: {report.runtime.name}" + (f" ({report.runtime.version})" if report.runtime.version else ""))
    typer.echo(f"✓ Image: {report.image_ref}")
    for directory in report.created_dirs:
        typer.echo(f"✓ Created {directory}")
    typer.echo("Setup complete.")


@app.command("build-artifact")
def build_artifact_command(ctx: typer.Context) -> None:
    """Build the APK inside the toolchain container."""
    try:
        artifact = service.build_artifact(_settings(ctx), _executor(ctx))
    except PipelineError as exc:
        _fail(exc)
    typer.echo("✓ APK built successfully")
    typer.echo(f"  APK location: {artifact.path}")
    typer.echo(f"  APK size: {_human_size(artifact.size_bytes)}")
    typer.echo(f'  Install via ADB: adb install "{artifact.path}"')


@app.command("fix-artifact")
def fix_artifact_command(ctx: typer.Context) -> None:
    """Strip old signatures from the APK and regenerate its manifest."""
    settings = _settings(ctx)
    try:
        artifact = service.fix_artifact_at_default_path(settings)
    except PipelineError as exc:
        _fail(exc)
    typer.echo(f"✓ APK fixed: {artifact.path} ({_human_size(artifact.size_bytes)})")
    if settings.manifest_digest_mode == "placeholder":
        typer.echo("  Note: manifest digests are placeholders; sign the APK before distributing it.")


@app.command("build-bundle")
def build_bundle_command(
    ctx: typer.Context,
    skip_build: bool = typer.Option(
        False, "--skip-build", help="Bundle the existing APK instead of rebuilding it."
    ),
) -> None:
    """Build the APK, then repackage it as an AAB-style bundle."""
    try:
        bundle = service.build_bundle(_settings(ctx), _executor(ctx), skip_build=skip_build)
    except PipelineError as exc:
        _fail(exc)
    typer.echo("✓ AAB created successfully")
    typer.echo(f"  AAB location: {bundle.path}")
    typer.echo(f"  AAB size: {_human_size(bundle.size_bytes)}")
    typer.echo("  Note: basic conversion; sign the AAB with your keystore before uploading.")


@app.command("clean")
def clean_command(
    ctx: typer.Context,
    image: bool = typer.Option(False, "--image", help="Also remove the pulled toolchain image."),
) -> None:
    """Delete build outputs and leftover scratch directories."""
    try:
        removed = service.clean(_settings(ctx), _executor(ctx), remove_image=image)
    except PipelineError as exc:
        _fail(exc)
    for path in removed:
        typer.echo(f"removed {path}")
    typer.echo(f"Clean complete ({len(removed)} paths removed).")


@app.command("doctor")
def doctor_command(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """Report the status of every configured container runtime."""
    statuses = service.runtime_report(_settings(ctx), _executor(ctx))
    ready = any(s.is_ready for s in statuses)

    if as_json:
        typer.echo(json.dumps({"ready": ready, "runtimes": [s.to_dict() for s in statuses]}, indent=2))
    else:
        for status in statuses:
            mark = "✓" if status.is_ready else "✗"
            typer.echo(f"{mark} {status.name}: {status.diagnostic}")

    if not ready:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
