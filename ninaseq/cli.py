"""
Command Line Interface for ninaseq.

This module provides commands for validating, inspecting and converting NINA
sequence files, and for managing the ninaseq configuration.
"""

import click
import sys
from pathlib import Path
from typing import Optional, List
import os

from . import __version__
from .core.models import AREAS
from .main import (
    run_config_commands,
    run_init,
    run_new,
    run_normalize,
    run_show,
    run_stats,
    run_template,
    run_validate,
)


def _apply_verbosity(verbose: int) -> None:
    if verbose == 1:
        os.environ['NINASEQ_LOG_LEVEL'] = 'INFO'
    elif verbose >= 2:
        os.environ['NINASEQ_LOG_LEVEL'] = 'DEBUG'


config_option = click.option('--config', '-c', type=click.Path(exists=True, path_type=Path),
                             help='Path to configuration file')
verbose_option = click.option('--verbose', '-V', count=True, help='Increase verbosity (use -VV for debug)')


@click.group(help="ninaseq - Edit and inspect NINA advanced sequence files.")
@click.version_option(__version__, '--version', '-v', prog_name='ninaseq')
@click.option('--verbose', '-V', count=True, help='Increase verbosity (use -VV for debug)')
@click.pass_context
def cli(ctx: click.Context, verbose: int) -> None:
    """
    ninaseq - Edit and inspect NINA advanced sequence files.

    Usage Examples:
      ninaseq validate sequence.json                 # Check a sequence file
      ninaseq validate ./sequences                   # Check every file in a directory
      ninaseq show sequence.json                     # Show the sequence tree
      ninaseq stats sequence.json --format json      # Item counts as JSON
      ninaseq new night.json --title "M42 night"     # Create an empty sequence
      ninaseq template sequence.json -o t.json       # Export the target area as a template
      ninaseq normalize sequence.json -o clean.json  # Re-export with fresh ids
      ninaseq config --list                          # List configuration
    """
    _apply_verbosity(verbose)
    ctx.ensure_object(dict)


@cli.command(help="Validate sequence files or directories of them.")
@click.argument('paths', nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@config_option
@click.option('--format', type=click.Choice(['text', 'json']), default='text',
              help='Output format (default: text)')
@verbose_option
def validate(paths: List[Path], config: Optional[Path], format: str, verbose: int) -> None:
    """
    Validate sequence files.

    Directories are searched recursively for .json files. Unresolved $ref
    values are reported as warnings and do not fail validation.

    Examples:
      ninaseq validate sequence.json
      ninaseq validate ./sequences --format json
    """
    _apply_verbosity(verbose)
    sys.exit(run_validate(list(paths), config_path=config, output_format=format))


@cli.command(help="Show a sequence as a tree.")
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@click.option('--area', '-a', type=click.Choice(list(AREAS)), default=None,
              help='Only show one area')
@click.option('--depth', '-d', type=click.IntRange(min=1), default=None,
              help='Maximum nesting depth to expand')
@verbose_option
def show(file_path: Path, config: Optional[Path], area: Optional[str], depth: Optional[int],
         verbose: int) -> None:
    """
    Show a sequence as a tree of areas, containers and instructions.

    Examples:
      ninaseq show sequence.json
      ninaseq show sequence.json --area target --depth 2
    """
    _apply_verbosity(verbose)
    sys.exit(run_show(file_path, config_path=config, area=area, max_depth=depth))


@cli.command(help="Show statistics for a sequence.")
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@click.option('--output', '-o', type=click.Path(path_type=Path),
              help='Output file for statistics')
@click.option('--format', type=click.Choice(['json', 'yaml', 'text']),
              default='text', help='Output format (default: text)')
@verbose_option
def stats(file_path: Path, config: Optional[Path], output: Optional[Path], format: str,
          verbose: int) -> None:
    """
    Show item, container, condition and trigger counts for a sequence.

    Examples:
      ninaseq stats sequence.json
      ninaseq stats sequence.json --format yaml -o stats.yaml
    """
    _apply_verbosity(verbose)
    sys.exit(run_stats(file_path, config_path=config, output_path=output, output_format=format))


@cli.command(help="Create an empty sequence file.")
@click.argument('output', type=click.Path(dir_okay=False, path_type=Path))
@click.option('--title', '-t', type=str, default=None, help='Sequence title')
@click.option('--force', '-f', is_flag=True, help='Overwrite an existing file')
@config_option
@verbose_option
def new(output: Path, title: Optional[str], force: bool, config: Optional[Path], verbose: int) -> None:
    """
    Create an empty sequence file with start, target and end areas.

    Example:
      ninaseq new night.json --title "M42 night"
    """
    _apply_verbosity(verbose)
    sys.exit(run_new(output, title=title, config_path=config, force=force))


@cli.command(help="Export one area of a sequence as a template.")
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--area', '-a', type=click.Choice(list(AREAS)), default='target',
              help='Area to export (default: target)')
@click.option('--name', '-n', type=str, default=None, help='Template name')
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Output file')
@config_option
@verbose_option
def template(file_path: Path, area: str, name: Optional[str], output: Optional[Path],
             config: Optional[Path], verbose: int) -> None:
    """
    Export the items of one area as a sequential container template.

    Example:
      ninaseq template sequence.json --area target -o target_template.json
    """
    _apply_verbosity(verbose)
    sys.exit(run_template(file_path, area=area, name=name, config_path=config, output_path=output))


@cli.command(help="Re-export a sequence with normalized ids.")
@click.argument('file_path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--output', '-o', type=click.Path(path_type=Path), help='Output file')
@click.option('--indent', type=click.IntRange(min=0), default=None, help='JSON indentation')
@config_option
@verbose_option
def normalize(file_path: Path, output: Optional[Path], indent: Optional[int],
              config: Optional[Path], verbose: int) -> None:
    """
    Import and re-export a sequence.

    Wire ids are renumbered from 1 and nested objects are rewritten in the
    canonical layout.

    Example:
      ninaseq normalize sequence.json -o clean.json
    """
    _apply_verbosity(verbose)
    sys.exit(run_normalize(file_path, config_path=config, output_path=output, indent=indent))


@cli.command('config', help="Manage configuration settings.")
@click.option('--config', '-c', type=click.Path(path_type=Path),
              help='Path to configuration file (default: ninaseq_config.yaml)')
@click.option('--set', 'set_options', multiple=True, nargs=2, metavar='KEY VALUE',
              help='Set configuration option (e.g., --set history.max_entries 100)')
@click.option('--get', 'get_option', type=str,
              help='Get specific configuration option')
@click.option('--list', 'list_config', is_flag=True,
              help='List all configuration options')
@click.option('--validate', 'validate_config', is_flag=True,
              help='Validate configuration file')
@click.option('--reset', 'reset_config', is_flag=True,
              help='Reset to default configuration')
@verbose_option
def config_cmd(config: Optional[Path], set_options: List[tuple],
               get_option: str, list_config: bool, validate_config: bool,
               reset_config: bool, verbose: int) -> None:
    """
    Manage configuration settings.

    Configuration options follow the format 'section.option', such as:
    - history.max_entries
    - editor.default_area
    - export.indent
    - logging.level

    Examples:
      ninaseq config --list
      ninaseq config --get export.indent
      ninaseq config --set editor.default_title "Tonight"
      ninaseq config --validate
      ninaseq config --reset
    """
    _apply_verbosity(verbose)
    exit_code = run_config_commands(config_path=config, set_options=list(set_options),
                                    get_option=get_option, list_config=list_config,
                                    validate_config=validate_config,
                                    reset_config=reset_config)
    sys.exit(exit_code)


@cli.command(help="Initialize a new configuration file.")
def init() -> None:
    """
    Initialize a new configuration file.

    Creates a default ninaseq_config.yaml file in the current directory.

    Example:
      ninaseq init
    """
    sys.exit(run_init())


def main() -> None:
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
