"""
Command-line interface.

    doctldr [-o OUTPUT] [-f FORMAT] [--model MODEL] [--max-tokens N]
            [-j JOBS] [-c CONFIG] [-v] [--dry-run] [--debug] DIR [DIR ...]

Exit status:
    0    success (individual files may have been skipped)
    1    run-fatal error: configuration, credential, rejected request,
         unwritable output, or every document failed at the backend
    130  interrupted (partial output is still written)
"""

import argparse
from pathlib import Path

from . import __version__
from .config import load_config
from .errors import DoctldrError
from .logging_config import configure_logging, critical, info, warning
from .output import render, render_preview, write_output
from .pipeline import SummarizationPipeline

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="doctldr",
        description="Summarize documentation directories with a language model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Summarize a docs tree to stdout as Markdown
  doctldr docs/

  # JSON to a file, eight workers
  doctldr -f json -o summaries.json -j 8 docs/ api/

  # See what would be sent, without calling the backend
  doctldr --dry-run docs/

  # Debug mode (prompts and timings on stderr)
  DEBUG=true doctldr docs/
        """
    )

    parser.add_argument(
        'directories',
        nargs='+',
        metavar='DIR',
        type=Path,
        help='Documentation directories to summarize'
    )
    parser.add_argument(
        '-o', '--output',
        type=Path,
        help='Write output to this file instead of stdout'
    )
    parser.add_argument(
        '-f', '--format',
        dest='output_format',
        help='Output format: md, json or txt (default: md)'
    )
    parser.add_argument(
        '--model',
        help='Model name sent to the backend (default: gpt-4)'
    )
    parser.add_argument(
        '--max-tokens',
        type=int,
        help='Maximum tokens per summary (default: 2048)'
    )
    parser.add_argument(
        '-j', '--jobs',
        dest='concurrency',
        type=int,
        help='Number of files summarized concurrently (default: min(CPUs, 4))'
    )
    parser.add_argument(
        '-c', '--config',
        type=Path,
        help='Settings file (default: ~/.config/doctldr/config.yaml)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        default=None,
        help='Show progress and per-file information'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        default=None,
        help='List the files that would be summarized and exit'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Show debug output, including prompts'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    return parser


def main(argv=None) -> int:
    """Run doctldr; returns the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=bool(args.verbose), debug=args.debug)

    try:
        config = load_config(
            args.config,
            model=args.model,
            max_tokens=args.max_tokens,
            output_format=args.output_format,
            concurrency=args.concurrency,
            dry_run=args.dry_run,
            verbose=args.verbose,
        )
    except DoctldrError as e:
        critical(f"Configuration error: {e}", exc_info=False)
        return EXIT_FATAL

    configure_logging(verbose=config.verbose, debug=args.debug, log_file=config.log_file)

    pipeline = SummarizationPipeline(config)
    try:
        if config.dry_run:
            result = pipeline.preview(args.directories)
            write_output(render_preview(result.previews), args.output)
            return EXIT_OK

        result = pipeline.run(args.directories)
        output = render(result.summaries, config.output_format, config.include_metadata)
        write_output(output, args.output)
    except DoctldrError as e:
        critical(str(e), exc_info=True)
        return EXIT_FATAL
    except KeyboardInterrupt:
        warning("Interrupted before any output was produced")
        return EXIT_INTERRUPTED

    if result.failures:
        warning(f"{result.documents_failed} file(s) skipped; see messages above")
    info(f"Summarized {result.documents_processed} of {result.documents_found} file(s)")

    if result.cancelled:
        warning(f"Interrupted: wrote {result.documents_processed} completed summaries")
        return EXIT_INTERRUPTED
    return EXIT_OK
