"""
Developer CLI for the screenplay post-processing pipeline.

Runs saved sequences through the pipeline locally and prints the reports,
without the surrounding generation service.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from dotenv import load_dotenv
from pydantic import ValidationError as ModelValidationError

from .models import CharacterProfile, PersistentContext
from .hard_reject import run_detectors
from .pipeline import ScreenplayPostProcessor
from .settings import PipelineSettings
from .utils.errors import PipelineError, ValidationError, create_error_response

# Load environment variables
load_dotenv()


def _configure_logging() -> None:
    level = os.getenv("SCREENPLAY_QC_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(error: Exception) -> None:
    click.echo(json.dumps(create_error_response(error), indent=2), err=True)
    sys.exit(1)


def _load_context(path: Optional[str]) -> PersistentContext:
    if not path:
        return PersistentContext.create()
    return PersistentContext.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _load_characters(path: Optional[str]) -> List[CharacterProfile]:
    if not path:
        return []
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return [CharacterProfile.model_validate(item) for item in data]


@click.group()
def cli():
    """Screenplay quality-control tools."""
    _configure_logging()


@cli.command()
@click.argument('unit_files', nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option('--context', 'context_path', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with the context from earlier sequences')
@click.option('--save-context', type=click.Path(dir_okay=False),
              help='Write the final context to this JSON file')
@click.option('--characters', 'characters_path', type=click.Path(exists=True, dir_okay=False),
              help='JSON list of character profiles')
@click.option('--seed', type=int, default=None, help='Random seed for reproducible output')
@click.option('--start', type=int, default=1, help='Sequence number of the first file (default: 1)')
@click.option('--output-dir', type=click.Path(file_okay=False),
              help='Write each cleaned sequence to this directory')
def process(
    unit_files: Tuple[str, ...],
    context_path: Optional[str],
    save_context: Optional[str],
    characters_path: Optional[str],
    seed: Optional[int],
    start: int,
    output_dir: Optional[str],
) -> None:
    """Run UNIT_FILES through the pipeline in order, threading the context."""
    try:
        settings = PipelineSettings.from_env()
        context = _load_context(context_path)
        characters = _load_characters(characters_path)
    except ModelValidationError as e:
        _fail(ValidationError(
            f"Invalid context or character file ({e.error_count()} errors)",
            details={"errors": [error["msg"] for error in e.errors()]},
        ))
        return
    except (PipelineError, ValueError) as e:
        _fail(e)
        return

    processor = ScreenplayPostProcessor(settings)
    reports = []
    rejected = False

    for offset, unit_file in enumerate(unit_files):
        sequence_number = start + offset
        text = Path(unit_file).read_text(encoding="utf-8")
        try:
            result = processor.process(
                text,
                context=context,
                sequence_number=sequence_number,
                characters=characters,
                seed=None if seed is None else seed + offset,
            )
        except PipelineError as e:
            _fail(e)
            return

        entry = {
            "file": unit_file,
            "hard_reject": result.hard_reject,
            "surgical_prompt": result.surgical_prompt,
            "report": result.report.to_dict(),
        }
        reports.append(entry)

        if result.hard_reject:
            # Later sequences depend on this one; stop here
            rejected = True
            break

        context = result.updated_context
        if output_dir:
            out = Path(output_dir)
            out.mkdir(parents=True, exist_ok=True)
            (out / Path(unit_file).name).write_text(result.content, encoding="utf-8")

    if save_context:
        Path(save_context).write_text(context.model_dump_json(indent=2), encoding="utf-8")

    click.echo(json.dumps(reports, indent=2))
    if rejected:
        sys.exit(2)


@cli.command()
@click.argument('unit_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--sequence-number', type=int, default=1, help='Position of the sequence (default: 1)')
@click.option('--format', 'output_format', type=click.Choice(['json', 'table']), default='table',
              help='Output format (default: table)')
def scan(unit_file: str, sequence_number: int, output_format: str) -> None:
    """Print every detector result for UNIT_FILE without changing it."""
    try:
        settings = PipelineSettings.from_env()
    except PipelineError as e:
        _fail(e)
        return

    text = Path(unit_file).read_text(encoding="utf-8")
    results = run_detectors(text, sequence_number=sequence_number, settings=settings)

    if output_format == 'json':
        click.echo(json.dumps({name: r.to_dict() for name, r in results.items()}, indent=2))
        return

    click.echo(f"\n{'Detector':<22} {'Count':<8} {'Reject':<8} Example")
    click.echo("-" * 80)
    for name, result in results.items():
        example = result.examples[0] if result.examples else ""
        flag = "YES" if result.is_hard_reject else "-"
        click.echo(f"{name:<22} {result.count:<8} {flag:<8} {example[:40]}")

    failing = [r for r in results.values() if r.is_hard_reject]
    click.echo(f"\n{len(failing)} detector(s) would reject this sequence.")


if __name__ == '__main__':
    cli()
