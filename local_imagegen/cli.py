"""Thin CLI wrapper for local_imagegen.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from local_imagegen import __version__
from local_imagegen.config import get_settings, print_settings_json
from local_imagegen.errors import ImageGenError

app = typer.Typer(
    name="imagegen",
    help="Local Image Generator - build, digest-tag and push container images",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


class LogLevel(str, Enum):
    """Accepted values for --log-level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"local-imagegen version {__version__}")
        raise typer.Exit()


def configure_logging(level: str) -> None:
    """Route log records to stderr through Rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Local Image Generator - build, digest-tag and push container images."""


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings))
    else:
        skip_push_display = (
            str(settings.skip_push)
            if settings.skip_push is not None
            else "(derived from cluster)"
        )
        extra_display = ", ".join(settings.extra_local_contexts) or "(none)"
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Cluster:[/bold]")
        console.print(f"  Kube context:        {settings.kube_context}")
        console.print(f"  Skip push:           {skip_push_display}")
        console.print(f"  Extra local contexts: {extra_display}")
        console.print()
        console.print("[bold]Backends:[/bold]")
        console.print(f"  Docker host:         {settings.docker_host or '(environment)'}")
        console.print(f"  Bazel binary:        {settings.bazel_binary}")
        console.print()
        console.print("[bold]Tagging:[/bold]")
        console.print(f"  Tag policy:          {settings.tagger}")
        console.print(f"  Tag template:        {settings.tag_template or '(none)'}")
        console.print()
        console.print("[bold]Operational:[/bold]")
        console.print(f"  Log level:           {settings.log_level}")
        console.print()
        console.print("[bold]Timeouts (seconds):[/bold]")
        console.print(f"  Docker API timeout:  {settings.docker_timeout}")
        console.print(f"  Build timeout:       {settings.build_timeout or '(none)'}")


@app.command()
def validate(
    build_file: Annotated[Path, typer.Argument(help="Path to build file (YAML/JSON)")],
) -> None:
    """Validate a build file without building anything."""
    from local_imagegen.artifacts.io import load_build_file

    try:
        schema = load_build_file(build_file)
    except ImageGenError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None

    console.print(f"[green]✓ {build_file} is valid[/green]")
    for artifact in schema.artifacts:
        kind = artifact.build.kind if artifact.build else "?"
        console.print(f"  {escape(artifact.image_name)} ({kind}, {artifact.workspace})")


@app.command()
def build(
    build_file: Annotated[Path, typer.Argument(help="Path to build file (YAML/JSON)")],
    context: Annotated[
        str | None,
        typer.Option("--context", "-c", help="Target cluster context"),
    ] = None,
    push: Annotated[
        bool | None,
        typer.Option(
            "--push/--skip-push",
            help="Push images (default: skip for local clusters)",
        ),
    ] = None,
    tagger_name: Annotated[
        str | None,
        typer.Option("--tagger", "-t", help="Tag policy: sha256, envTemplate, dateTime"),
    ] = None,
    tag_template: Annotated[
        str | None,
        typer.Option("--tag-template", help="Template for the envTemplate policy"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
    log_level: Annotated[
        LogLevel | None,
        typer.Option(
            "--log-level", case_sensitive=False, help="Override the logging level"
        ),
    ] = None,
) -> None:
    """Build, tag and push the artifacts in a build file.

    Backend progress is streamed to stdout (stderr with --json).
    """
    from local_imagegen.artifacts.io import load_build_file
    from local_imagegen.builds.models import LocalBuildConfig
    from local_imagegen.builds.service import LocalBuilder
    from local_imagegen.builds.tag import create_tagger
    from local_imagegen.cancel import CancelToken

    settings = get_settings()
    configure_logging(log_level.value if log_level else settings.log_level)

    try:
        schema = load_build_file(build_file)

        skip_push = None if push is None else not push
        if skip_push is None:
            skip_push = schema.local.skip_push
        if skip_push is None:
            skip_push = settings.skip_push

        policy = schema.tag_policy
        tagger = create_tagger(
            tagger_name or (policy.name if policy else settings.tagger),
            tag_template
            or (policy.template if policy else None)
            or settings.tag_template,
        )

        build_config = LocalBuildConfig(
            cluster_context=context or settings.kube_context,
            skip_push=skip_push,
        )
        builder = LocalBuilder(build_config, settings=settings)
        labels = builder.labels()

        out = sys.stderr if json_output else sys.stdout
        results = builder.build(
            out,
            tagger,
            schema.artifacts,
            token=CancelToken(timeout=settings.build_timeout),
        )
    except ImageGenError as e:
        err_console.print(f"[red]Build failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        err_console.print("[yellow]Build cancelled[/yellow]")
        raise typer.Exit(code=130) from None

    if json_output:
        output = {
            "builds": [r.to_dict() for r in results],
            "labels": labels,
            "pushed": not builder.skip_push,
        }
        typer.echo(json.dumps(output, indent=2))
    else:
        console.print()
        console.print(f"[bold]Built {len(results)} image(s):[/bold]")
        for r in results:
            console.print(f"  [green]✓ {escape(r.image_name)}[/green] -> {escape(r.tag)}")
        if builder.skip_push:
            console.print("[blue]Push skipped[/blue]")
