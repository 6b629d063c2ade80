"""
autodep CLI
Main entry point for the command-line interface

Usage:
    autodep [OPTIONS] SCRIPT [ARGS]...

    autodep app.py                # install what app.py imports, then run it
    autodep -w app.py --port 80   # restart app.py whenever one of its modules changes
    autodep -s app.py             # also record installed packages in autodep.yaml
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from autodep.discovery.application.dependency_walker import DependencyWalker
from autodep.discovery.application.import_extractor import ImportExtractor
from autodep.discovery.application.module_resolver import ModuleResolver
from autodep.pipeline.application.cycle_pipeline import CyclePipeline
from autodep.services.dependencies.dependency_manager import DependencyManager
from autodep.services.dependencies.environment import InstalledEnvironment
from autodep.services.dependencies.install_orchestrator import InstallOrchestrator
from autodep.services.dependencies.version_reconciler import VersionReconciler
from autodep.services.package_manager.manifest import ManifestStore
from autodep.shared.domain.exceptions import AutodepError
from autodep.shared.infrastructure.config import Settings, settings
from autodep.shared.infrastructure.logging import configure_logging, get_logger
from autodep.supervisor.file_watcher import FileWatcher
from autodep.supervisor.process_launcher import ProcessLauncher
from autodep.supervisor.supervisor import Supervisor

logger = get_logger(__name__)
console = Console(stderr=True)

app = typer.Typer(
    name="autodep",
    help="Run a Python script and get all of its dependencies installed automatically.",
    add_completion=False,
)


def build_supervisor(
    script: Path,
    args: List[str],
    watch: bool = False,
    save: bool = False,
    config: Settings = settings,
) -> Supervisor:
    """Wire the collaborators for one supervised script."""
    resolver = ModuleResolver.for_script(script)
    environment = InstalledEnvironment()
    manifest = ManifestStore(Path.cwd() / config.manifest_file)
    installer = DependencyManager(
        manifest=manifest,
        environment=environment,
        extra_args=config.pip_extra_args,
        break_system_packages=config.pip_break_system_packages,
        console=console,
    )
    pipeline = CyclePipeline(
        walker=DependencyWalker(resolver, ImportExtractor()),
        reconciler=VersionReconciler(environment, resolver.is_builtin),
        orchestrator=InstallOrchestrator(installer),
        manifest=manifest,
    )
    return Supervisor(
        script,
        args,
        pipeline=pipeline,
        launcher=ProcessLauncher(),
        watcher=FileWatcher(interval=config.watch_interval) if watch else None,
        watch=watch,
        save=save,
        console=console,
    )


@app.command(
    context_settings={
        "help_option_names": ["-h", "--help"],
        # Everything after SCRIPT belongs to the script
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
def run(
    ctx: typer.Context,
    script: Optional[Path] = typer.Argument(None, help="Script to run", show_default=False),
    save: bool = typer.Option(False, "--save", "-s", help="Save installed dependencies to the manifest"),
    watch: bool = typer.Option(False, "--watch", "-w", help="Watch the imported files and restart when one changes"),
) -> None:
    """Use autodep instead of python and get all dependencies installed automatically."""
    if script is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)

    configure_logging()
    script = script.absolute()
    args = list(ctx.args)
    logger.info("autodep_started", script=str(script), args=args, watch=watch, save=save)

    supervisor = build_supervisor(script, args, watch=watch, save=save)
    try:
        exit_code = asyncio.run(supervisor.run())
    except AutodepError as e:
        logger.error("autodep_failed", error_type=type(e).__name__, error=str(e))
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        raise typer.Exit(130)

    raise typer.Exit(exit_code)


def main():
    app()


if __name__ == "__main__":
    main()
