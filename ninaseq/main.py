"""
Main application entry points for ninaseq.

Each ``run_*`` function backs one CLI command. They load configuration, set
up logging, do their work and return a process exit code.
"""

import sys
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional
import yaml

from rich.console import Console
from rich.tree import Tree

from .config.config import Config
from .config.settings import Settings
from .core.editor import SequenceEditor
from .core.event_bus import EventBus
from .core.factories import create_empty_sequence
from .core.models import AREAS, SequenceItem
from .parsers.sequence_serializer import SequenceFormatError, SequenceSerializer
from .utils.file_utils import FileUtils
from .utils.formatting import FormattingUtils
from .utils.log_setup import resolve_log_level, setup_logging


logger = logging.getLogger(__name__)


def _prepare(config_path: Optional[Path] = None) -> Config:
    config = Config.load(config_path)
    log_level = resolve_log_level(config.logging.level)
    setup_logging(log_level, Path(config.logging.file) if config.logging.file else None)
    return config


def _write_output(text: str, output_path: Optional[Path]) -> bool:
    if output_path:
        if not FileUtils.write_text(Path(output_path), text):
            return False
        print(f"Wrote {output_path}")
    else:
        print(text)
    return True


def _open_editor(config: Config, file_path: Path) -> SequenceEditor:
    """Load ``file_path`` into an editor that publishes on a private bus."""
    sequence = SequenceSerializer(config).parse(Path(file_path))
    return SequenceEditor(config, event_bus=EventBus(), sequence=sequence)


def _item_warnings(config: Config, text: str) -> List[str]:
    """Describe out-of-range or unknown values in a valid document."""
    editor = SequenceEditor(config, event_bus=EventBus(), sequence=SequenceSerializer(config).import_sequence(text))
    names = {node.id: node.name for node in editor.iter_nodes()}
    warnings = []
    for node_id, problems in editor.check_items().items():
        name = names[node_id]
        warnings.extend(f"{name}: {problem}" for problem in problems)
    return warnings


def run_validate(paths: List[Path], config_path: Optional[Path] = None,
                 output_format: str = 'text') -> int:
    """
    Validate sequence files, or every sequence file under a directory.

    Returns:
        0 when every document is valid, 1 otherwise
    """
    try:
        config = _prepare(config_path)
        serializer = SequenceSerializer(config)

        files: List[Path] = []
        for path in paths:
            path = Path(path)
            if path.is_dir():
                files.extend(FileUtils.find_sequence_files(path))
            else:
                files.append(path)

        if not files:
            print("No sequence files found", file=sys.stderr)
            return 1

        results: Dict[str, Dict[str, Any]] = {}
        for file_path in files:
            text = serializer.read_file(file_path) if serializer.validate_source(file_path) else None
            if text is None:
                results[str(file_path)] = {'valid': False, 'errors': ['Cannot read file'], 'warnings': []}
            else:
                result = serializer.validate(text).to_dict()
                if result['valid']:
                    result['warnings'].extend(_item_warnings(config, text))
                results[str(file_path)] = result

        if output_format == 'json':
            print(FormattingUtils.format_json(results))
        else:
            for name, result in results.items():
                status = "valid" if result['valid'] else "INVALID"
                print(f"{name}: {status}")
                for error in result['errors']:
                    print(f"  error: {error}")
                for warning in result['warnings']:
                    print(f"  warning: {warning}")

        return 0 if all(result['valid'] for result in results.values()) else 1

    except Exception as e:
        logging.error(f"Validate error: {str(e)}")
        return 1


def _add_branch(branch: Tree, item: SequenceItem, depth: Optional[int]) -> None:
    node = branch.add(FormattingUtils.format_item_label(item))
    for condition in item.conditions or []:
        node.add(f"[cyan]condition[/cyan] {condition.name}")
    for trigger in item.triggers or []:
        node.add(f"[magenta]trigger[/magenta] {trigger.name}")
    if depth is not None and depth <= 1:
        if item.items:
            node.add(f"[dim]... {len(item.items)} more[/dim]")
        return
    for child in item.items or []:
        _add_branch(node, child, None if depth is None else depth - 1)


def run_show(file_path: Path, config_path: Optional[Path] = None, area: Optional[str] = None,
             max_depth: Optional[int] = None) -> int:
    """
    Render a sequence file as a tree in the terminal.
    """
    try:
        config = _prepare(config_path)
        sequence = SequenceSerializer(config).parse(Path(file_path))

        root = Tree(f"[bold]{sequence.title}[/bold]")
        for area_name, forest in sequence.areas():
            if area and area_name != area:
                continue
            branch = root.add(f"[yellow]{area_name.capitalize()}[/yellow] ({len(forest)})")
            for item in forest:
                _add_branch(branch, item, max_depth)

        if sequence.global_triggers and not area:
            triggers = root.add("[yellow]Global triggers[/yellow]")
            for trigger in sequence.global_triggers:
                triggers.add(f"[magenta]trigger[/magenta] {trigger.name}")

        Console().print(root)
        return 0

    except SequenceFormatError as e:
        print(f"Cannot read sequence: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.error(f"Show error: {str(e)}")
        return 1


def run_stats(file_path: Path, config_path: Optional[Path] = None,
              output_path: Optional[Path] = None, output_format: str = 'text') -> int:
    """
    Print item counts for a sequence file.

    Args:
        file_path: Sequence file to analyze
        config_path: Path to configuration file
        output_path: Output file for statistics
        output_format: Output format ('json', 'yaml', 'text')

    Returns:
        Exit code
    """
    try:
        config = _prepare(config_path)
        editor = _open_editor(config, file_path)
        stats = {'title': editor.sequence.title, **editor.get_sequence_stats()}

        if output_format == 'json':
            text = FormattingUtils.format_json(stats)
        elif output_format == 'yaml':
            text = yaml.dump(stats, default_flow_style=False, sort_keys=False)
        else:
            lines = [f"Sequence: {stats['title']}",
                     f"Items: {stats['total_items']} "
                     f"(Start: {stats['start_items']}, Target: {stats['target_items']}, End: {stats['end_items']})",
                     f"Containers: {stats['containers']}",
                     f"Disabled: {stats['disabled_items']}",
                     f"Conditions: {stats['conditions']}",
                     f"Triggers: {stats['triggers']}",
                     f"Global triggers: {stats['global_triggers']}"]
            text = "\n".join(lines)

        return 0 if _write_output(text, output_path) else 1

    except SequenceFormatError as e:
        print(f"Cannot read sequence: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.error(f"Stats error: {str(e)}")
        return 1


def run_new(output_path: Path, title: Optional[str] = None, config_path: Optional[Path] = None,
            force: bool = False) -> int:
    """Write an empty sequence document."""
    try:
        config = _prepare(config_path)
        output_path = Path(output_path)
        if output_path.exists() and not force:
            print(f"File already exists: {output_path}", file=sys.stderr)
            return 1

        sequence = create_empty_sequence(title or config.editor.default_title)
        if not SequenceSerializer(config).save(sequence, output_path):
            return 1
        print(f"Created sequence '{sequence.title}': {output_path}")
        return 0

    except Exception as e:
        logging.error(f"New sequence error: {str(e)}")
        return 1


def run_template(file_path: Path, area: str = 'target', name: Optional[str] = None,
                 config_path: Optional[Path] = None, output_path: Optional[Path] = None) -> int:
    """Export one area of a sequence file as a template container."""
    try:
        config = _prepare(config_path)
        if area not in AREAS:
            print(f"Unknown area: {area}", file=sys.stderr)
            return 1

        editor = _open_editor(config, file_path)
        text = editor.export_template_json(name or f"{editor.sequence.title} {area}", area=area)
        return 0 if _write_output(text, output_path) else 1

    except SequenceFormatError as e:
        print(f"Cannot read sequence: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.error(f"Template error: {str(e)}")
        return 1


def run_normalize(file_path: Path, config_path: Optional[Path] = None,
                  output_path: Optional[Path] = None, indent: Optional[int] = None) -> int:
    """
    Re-export a sequence file, renumbering wire ids and dropping unknown markers.
    """
    try:
        config = _prepare(config_path)
        if indent is not None:
            config.apply_cli_overrides({'indent': indent})

        editor = _open_editor(config, file_path)
        return 0 if _write_output(editor.export_json(), output_path) else 1

    except SequenceFormatError as e:
        print(f"Cannot read sequence: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.error(f"Normalize error: {str(e)}")
        return 1


def run_config_commands(config_path: Optional[Path] = None, set_options: Optional[List[tuple]] = None,
                        get_option: Optional[str] = None, list_config: bool = False,
                        validate_config: bool = False, reset_config: bool = False) -> int:
    """
    Run configuration management commands.

    Args:
        config_path: Path to configuration file
        set_options: List of (key, value) tuples to set
        get_option: Option to get
        list_config: Whether to list all configuration options
        validate_config: Whether to validate the configuration
        reset_config: Whether to reset to default configuration

    Returns:
        Exit code
    """
    try:
        if not config_path:
            config_path = Path(Settings.DEFAULT_CONFIG_PATH)
            if not config_path.exists():
                config_path = Path.home() / ".ninaseq" / "config.yaml"

        setup_logging(resolve_log_level())

        if reset_config:
            Config().save(config_path)
            print(f"Configuration reset to defaults: {config_path}")
            return 0

        config = Config.load(config_path)

        if validate_config:
            problems = config.validate()
            if problems:
                print("Configuration validation failed:", file=sys.stderr)
                for problem in problems:
                    print(f"  {problem}", file=sys.stderr)
                return 1
            print("Configuration is valid")
            return 0

        if set_options:
            for key, value in set_options:
                try:
                    config.set_value(key, value)
                except KeyError:
                    print(f"Unknown option: {key}. Use 'section.option' format", file=sys.stderr)
                    return 1
                except ValueError:
                    print(f"Invalid value for {key}: {value}", file=sys.stderr)
                    return 1

            problems = config.validate()
            if problems:
                for problem in problems:
                    print(problem, file=sys.stderr)
                return 1

            config.save(config_path)
            print(f"Configuration updated: {config_path}")

        if get_option:
            try:
                print(f"{get_option} = {config.get_value(get_option)}")
            except KeyError:
                print(f"Unknown option: {get_option}. Use 'section.option' format", file=sys.stderr)
                return 1

        if list_config:
            print("Configuration:")
            for section, options in config.to_dict().items():
                print(f"  [{section}]")
                for key, value in options.items():
                    print(f"    {key} = {value}")
                print()

        return 0

    except Exception as e:
        logging.error(f"Config command error: {str(e)}")
        return 1


def run_init(config_path: Optional[Path] = None) -> int:
    """Write a default configuration file, refusing to overwrite one."""
    config_path = Path(config_path or Settings.DEFAULT_CONFIG_PATH)
    if config_path.exists():
        print(f"Configuration file already exists: {config_path}", file=sys.stderr)
        return 1

    with open(config_path, 'w') as f:
        yaml.dump(Config.get_default_config_dict(), f, default_flow_style=False)

    print(f"Created default configuration file: {config_path}")
    return 0
