"""CLI interface for harpoon"""

import logging
import sys

import click

from harpoon.core.config import Config
from harpoon.core.context import RunContext
from harpoon.core.log import setup_logging
from harpoon.core.orchestrator import Orchestrator
from harpoon.errors import HarpoonError
from harpoon.runtime.detector import RuntimeDetector
from harpoon.version import get_detailed_version, get_version_string

logger = logging.getLogger(__name__)

EPILOG = """\b
Modes:
  --push-mode  1=registry/image:tag  2=registry/project/image:tag
               3=registry/<original project>/image:tag
  --save-mode  1=current dir  2=./images/  3=./images/<project>/
  --load-mode  1=current dir  2=./images/  3=recursive ./images/*/

\b
Examples:
  hpn -a pull -f images.txt
  hpn -a save -f images.txt --save-mode 2
  hpn -a push -f images.txt -r harbor.com -p prod --push-mode 2
  hpn --runtime podman -a pull -f images.txt
"""


def prompt_fallback(question: str) -> bool:
    """Ask the user whether to use another runtime, default no"""
    try:
        return click.confirm(question, default=False)
    except click.Abort:
        return False


def _configure_logging(cfg: Config, debug: bool) -> None:
    log = cfg.logging
    level = "debug" if debug else log["level"]
    setup_logging(level=level, fmt=log["format"], log_file=log["file"] or None, console=log["console"])


def _report(outcome) -> None:
    """Print the batch summary and enumerate failures"""
    click.echo(f"\n{outcome.summary()}")
    if outcome.failed:
        label = "files" if outcome.action == "load" else "images"
        click.echo(f"\nFailed {label}:")
        for item, error in outcome.failed:
            click.echo(f"  - {item}: {error}")


@click.group(invoke_without_command=True, epilog=EPILOG)
@click.option("-a", "--action", type=str, help="Action: pull | save | load | push")
@click.option("-f", "--file", "image_file", type=str, help="Image list file (required for pull/save/push)")
@click.option("-r", "--registry", type=str, help="Target registry")
@click.option("-p", "--project", type=str, help="Target project namespace")
@click.option("--push-mode", type=int, default=None, help="Push mode (1|2|3)")
@click.option("--load-mode", type=int, default=None, help="Load mode (1|2|3)")
@click.option("--save-mode", type=int, default=None, help="Save mode (1|2|3)")
@click.option("-c", "--config", "config_file", type=str,
              help="Config file (default: ./config.yaml, ~/.hpn/config.yaml, /etc/hpn/config.yaml)")
@click.option("--runtime", "runtime_name", type=str, help="Container runtime: docker | podman | nerdctl")
@click.option("--auto-fallback", is_flag=True, help="Automatically fall back to an available runtime")
@click.option("--platform", type=str, default="", help="Platform for pull, e.g. linux/arm64")
@click.option("--workers", type=int, default=None,
              help="Process items concurrently (capped by parallel.max_workers, default 1)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(get_version_string(), "-v", "-V", "--version", message="Harpoon (hpn) %(version)s")
@click.pass_context
def cli(ctx, action, image_file, registry, project, push_mode, load_mode, save_mode, config_file,
        runtime_name, auto_fallback, platform, workers, debug):
    """Manage container images (pull/save/load/push) with flexible modes"""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_file"] = config_file

    if ctx.invoked_subcommand is not None:
        return

    setup_logging(level="debug" if debug else "info")

    try:
        cfg = Config(config_file)
        cfg.validate()
        _configure_logging(cfg, debug)

        context = RunContext.build(
            cfg,
            action=action,
            image_file=image_file,
            registry=registry,
            project=project,
            save_mode=save_mode,
            load_mode=load_mode,
            push_mode=push_mode,
            runtime_name=runtime_name,
            auto_fallback=auto_fallback,
            platform=platform,
            workers=workers,
            confirm=prompt_fallback,
        )
    except HarpoonError as e:
        click.echo(f"✗ Error: {e}", err=True)
        sys.exit(1)

    if context.push_mode_upgraded:
        click.echo(f"Auto-adjusted to push mode 2 for project '{context.project}'")

    try:
        outcome = Orchestrator(context).run()
    except HarpoonError as e:
        click.echo(f"✗ Error: {e}", err=True)
        sys.exit(1)

    _report(outcome)

    if outcome.failed:
        click.echo(f"\n✗ {action} failed: {len(outcome.failed)} failed")
        sys.exit(1)

    click.echo(f"\n✓ {action} completed successfully")
    sys.exit(0)


@cli.command()
def version():
    """Show detailed version information"""
    click.echo(get_detailed_version())


@cli.command()
@click.pass_context
def validate(ctx):
    """Validate configuration file

    Examples:
        hpn -c config.yaml validate
    """
    try:
        cfg = Config(ctx.obj.get("config_file"))
        cfg.validate()
    except HarpoonError as e:
        click.echo(f"✗ Error: {e}")
        sys.exit(1)

    click.echo("✓ Configuration is valid")
    click.echo(f"  Source: {cfg.loaded_from or 'built-in defaults'}")
    click.echo(f"  Registry: {cfg.registry}")
    click.echo(f"  Project: {cfg.project}")
    click.echo(f"  Preferred runtime: {cfg.preferred_runtime or 'auto'}")
    sys.exit(0)


@cli.command()
def runtimes():
    """List container runtimes and their availability"""
    detector = RuntimeDetector()
    for name in detector.known_runtimes():
        descriptor = detector.probe(name)
        if descriptor.available:
            click.echo(f"✓ {name} {descriptor.version} (priority {descriptor.priority})")
        else:
            click.echo(f"✗ {name} unavailable (priority {descriptor.priority})")


def main():
    """Entry point for CLI"""
    cli()


if __name__ == "__main__":
    main()
