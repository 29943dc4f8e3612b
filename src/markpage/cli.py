#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/cli.py
"""Command-line interface for markpage.

Examples
--------
Basic conversion (writes README.pdf next to the input):
    $ markpage README.md

Letter paper, landscape, with a title page:
    $ markpage notes.md -o notes.pdf --paper-size letter --orientation landscape --include-title-page

Convert a remote document without images:
    $ markpage https://example.com/guide.md --out guide.pdf --no-images

Read from stdin and write to stdout:
    $ cat doc.md | markpage - --out - > doc.pdf
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import MISSING, Field, fields
from pathlib import Path
from typing import Any, Optional

from markpage import __version__
from markpage.api import markdown_to_pdf
from markpage.assets import is_remote_url
from markpage.exceptions import (
    AssetLoadError,
    BackendWriteError,
    DependencyError,
    MarkpageError,
    ValidationError,
)
from markpage.logging_utils import configure_logging
from markpage.options import PdfLayoutOptions
from markpage.progress import ProgressCallback
from markpage.utils.packages import get_package_version

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_DEPENDENCY_ERROR = 2
EXIT_VALIDATION_ERROR = 3
EXIT_FILE_ERROR = 4
EXIT_RENDERING_ERROR = 7


def get_exit_code_for_exception(exception: Exception) -> int:
    """Map an exception to a CLI exit code."""
    if isinstance(exception, (DependencyError, ImportError)):
        return EXIT_DEPENDENCY_ERROR
    if isinstance(exception, ValidationError):
        return EXIT_VALIDATION_ERROR
    if isinstance(exception, (AssetLoadError, OSError)):
        return EXIT_FILE_ERROR
    if isinstance(exception, BackendWriteError):
        return EXIT_RENDERING_ERROR
    return EXIT_ERROR


def _option_flag(option: Field) -> tuple[str, dict[str, Any]]:
    """Return the flag and argparse kwargs for one PdfLayoutOptions field."""
    metadata = option.metadata
    kebab = option.name.replace("_", "-")
    kwargs: dict[str, Any] = {"dest": option.name, "default": argparse.SUPPRESS}
    help_text = metadata.get("help", f"Configure {option.name}")

    if isinstance(option.default, bool):
        if option.default:
            flag = f"--{metadata.get('cli_name', 'no-' + kebab)}"
            kwargs["action"] = "store_false"
            kwargs["help"] = f"Disable: {help_text[0].lower()}{help_text[1:]}"
        else:
            flag = f"--{metadata.get('cli_name', kebab)}"
            kwargs["action"] = "store_true"
            kwargs["help"] = help_text
        return flag, kwargs

    flag = f"--{metadata.get('cli_name', kebab)}"
    if "choices" in metadata:
        kwargs["choices"] = metadata["choices"]
    if "type" in metadata:
        kwargs["type"] = metadata["type"]
    default = option.default if option.default is not MISSING else None
    kwargs["help"] = f"{help_text} (default: {default})" if default is not None else help_text
    return flag, kwargs


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser, with one flag per layout option."""
    parser = argparse.ArgumentParser(
        prog="markpage",
        description="Convert Markdown into a paginated, hyperlinked PDF.",
        epilog=__doc__.split("Examples\n--------\n", 1)[1] if __doc__ else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", help="Markdown file, http(s) URL, or '-' for stdin")
    parser.add_argument(
        "--out", "-o", metavar="PATH", help="Output PDF path, or '-' for stdout (default: input with .pdf)"
    )

    layout_group = parser.add_argument_group("layout options")
    for option in fields(PdfLayoutOptions):
        flag, kwargs = _option_flag(option)
        layout_group.add_argument(flag, **kwargs)

    parser.add_argument("--no-progress", action="store_true", help="Do not show a progress bar")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output (DEBUG logging)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        metavar="PATH",
        help="Write log messages to specified file in addition to console output",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable trace mode with very verbose logging and per-stage timing information",
    )
    version = get_package_version("markpage") or __version__
    parser.add_argument("--version", "-V", action="version", version=f"markpage {version}")
    return parser


def build_options(parsed_args: argparse.Namespace) -> PdfLayoutOptions:
    """Build layout options from the flags that were given.

    Raises
    ------
    ValidationError
        If an option value is out of range

    """
    given = {
        option.name: getattr(parsed_args, option.name)
        for option in fields(PdfLayoutOptions)
        if hasattr(parsed_args, option.name)
    }
    try:
        return PdfLayoutOptions(**given)
    except ValueError as e:
        raise ValidationError(str(e), original_error=e) from e


def _default_output(source: str) -> Optional[Path]:
    if source == "-" or is_remote_url(source):
        return None
    return Path(source).with_suffix(".pdf")


class RichProgress:
    """Rich progress bar driven by converter progress callbacks."""

    def __init__(self, description: str):
        """Create the bar; it is shown when the context is entered."""
        from rich.console import Console
        from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=Console(stderr=True),
            transient=True,
        )
        self._description = description
        self._task_id: Any = None

    def __enter__(self) -> "RichProgress":
        """Start rendering the bar."""
        self._progress.__enter__()
        self._task_id = self._progress.add_task(f"[cyan]{self._description}", total=100)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        """Stop rendering the bar."""
        self._progress.__exit__(*exc_info)

    def callback(self, percent: float, status: str, detail: str) -> None:
        """Update the bar from a progress event."""
        self._progress.update(self._task_id, completed=percent, description=f"[cyan]{status}")


def _convert(source: str, output: Any, options: PdfLayoutOptions, callback: Optional[ProgressCallback]) -> bytes:
    if source == "-":
        return markdown_to_pdf(sys.stdin.read(), output, options, callback)
    return markdown_to_pdf(source if is_remote_url(source) else Path(source), output, options, callback)


def _setup_logging_level(parsed_args: argparse.Namespace) -> None:
    # --trace takes highest precedence, then --verbose, then --log-level
    if parsed_args.trace:
        log_level = logging.DEBUG
    elif parsed_args.verbose and parsed_args.log_level == "WARNING":
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, parsed_args.log_level.upper())

    configure_logging(log_level, log_file=parsed_args.log_file, trace_mode=parsed_args.trace)


def main(args: list[str] | None = None) -> int:
    """Execute the markpage command line."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    try:
        _setup_logging_level(parsed_args)
    except OSError as e:
        print(f"Error: Cannot open log file: {e}", file=sys.stderr)
        return EXIT_FILE_ERROR

    try:
        options = build_options(parsed_args)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    if parsed_args.input != "-" and not is_remote_url(parsed_args.input) and not Path(parsed_args.input).is_file():
        print(f"Error: Input file not found: {parsed_args.input}", file=sys.stderr)
        return EXIT_FILE_ERROR

    out_arg = parsed_args.out
    output_path = Path(out_arg) if out_arg and out_arg != "-" else _default_output(parsed_args.input)
    to_stdout = out_arg == "-" or output_path is None
    if to_stdout and sys.stdout.isatty():
        print("Error: refusing to write PDF bytes to a terminal; use --out", file=sys.stderr)
        return EXIT_VALIDATION_ERROR

    show_progress = not parsed_args.no_progress and sys.stderr.isatty()
    try:
        if show_progress:
            with RichProgress(f"Converting {parsed_args.input}") as bar:
                data = _convert(parsed_args.input, None if to_stdout else output_path, options, bar.callback)
        else:
            data = _convert(parsed_args.input, None if to_stdout else output_path, options, None)
    except (MarkpageError, OSError) as e:
        logger.debug("Conversion failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return get_exit_code_for_exception(e)

    if to_stdout:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    else:
        print(f"Wrote {output_path} ({len(data)} bytes)", file=sys.stderr)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
