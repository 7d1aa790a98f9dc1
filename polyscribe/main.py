"""Main application entry point for Polyscribe."""

import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .config import PolyscribeConfig
from .errors import PolyscribeError, ConfigurationError
from .models.language import Language
from .services.backend_factory import create_workflow_controller
from .services.workflow_controller import WorkflowController
from .ui.workflow_screen import WorkflowScreen

logger = logging.getLogger(__name__)

LANGUAGE_CHOICE = click.Choice([language.display_name for language in Language], case_sensitive=False)


def setup_logging(config: PolyscribeConfig, level: Optional[str] = None) -> None:
    """Set up logging configuration from YAML config."""
    level = level or config.get('logging.level', 'INFO')
    log_file_path = config.get('logging.file_path', 'data/logs/polyscribe.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Polyscribe application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def _apply_language_options(config: PolyscribeConfig, source: Optional[str], target: Optional[str]) -> None:
    if source:
        config.set('languages.source', source)
    if target:
        config.set('languages.target', target)


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Path to configuration YAML file (default: ./polyscribe.yaml if present)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              default=None, help="Override the logging level from the configuration")
@click.version_option(__version__, prog_name="Polyscribe")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """Polyscribe - transcribe an audio file, translate it and save both."""
    try:
        config = PolyscribeConfig(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    setup_logging(config, log_level)
    ctx.obj = config


@cli.command()
@click.option("--source", type=LANGUAGE_CHOICE, help="Source language")
@click.option("--target", type=LANGUAGE_CHOICE, help="Target language")
@click.pass_obj
def run(config: PolyscribeConfig, source: Optional[str], target: Optional[str]) -> None:
    """Open the interactive screen."""
    _apply_language_options(config, source, target)
    try:
        controller = create_workflow_controller(config)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    WorkflowScreen(controller, autoload_sample=config.settings.sample.autoload).run()


@cli.command()
@click.argument("audio", type=click.Path(exists=True, dir_okay=False))
@click.option("--source", type=LANGUAGE_CHOICE, help="Source language")
@click.option("--target", type=LANGUAGE_CHOICE, help="Target language")
@click.option("--output-dir", type=click.Path(file_okay=False), help="Directory for the exported transcript")
@click.option("--no-translate", is_flag=True, help="Skip translation; export the transcript only")
@click.option("--timeout", type=float, default=600.0, show_default=True,
              help="Seconds to wait for each stage")
@click.pass_obj
def process(config: PolyscribeConfig, audio: str, source: Optional[str], target: Optional[str],
            output_dir: Optional[str], no_translate: bool, timeout: float) -> None:
    """Transcribe AUDIO, translate the transcript and save both without prompting."""
    _apply_language_options(config, source, target)
    console = Console()
    try:
        controller = create_workflow_controller(config, with_translation=not no_translate)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    try:
        path = run_pipeline(controller, audio, output_dir, translate=not no_translate, timeout=timeout)
    finally:
        controller.shutdown()
    console.print(f"✅ Saved to {path}", style="green")


def run_pipeline(controller: WorkflowController, audio: str, output_dir: Optional[str] = None,
                 translate: bool = True, timeout: float = 600.0) -> Path:
    """Select, transcribe, translate and export in sequence.

    Raises:
        click.ClickException: If any stage fails
    """
    if controller.select_file([audio]) is None:
        raise click.ClickException(controller.state.last_error or f"Cannot use {audio}")

    try:
        task = controller.transcribe()
    except PolyscribeError as e:
        raise click.ClickException(str(e))
    if task is None or not controller.wait_until_idle(timeout):
        raise click.ClickException(controller.state.last_error or "Transcription did not finish")
    if not controller.state.transcript:
        raise click.ClickException(controller.state.last_error or "No speech recognized")

    if translate:
        controller.translate()
        if not controller.wait_until_idle(timeout):
            raise click.ClickException("Translation did not finish")
        if controller.state.last_error:
            raise click.ClickException(controller.state.last_error)

    path = controller.export(directory=output_dir)
    if path is None:
        raise click.ClickException(controller.state.last_error or "Export failed")
    return path


@cli.command()
def languages() -> None:
    """List the supported languages."""
    console = Console()
    for language in Language:
        console.print(f"{language.display_name:<10} {language.locale_identifier}")


def main() -> None:
    """Main entry point for Polyscribe application."""
    cli()


if __name__ == "__main__":
    main()
