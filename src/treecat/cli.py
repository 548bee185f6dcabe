"""
CLI entrypoint for treecat package.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core import (
    Config,
    load_extra_patterns,
    run,
    error,
    success,
    info,
    ConfigFileError,
    TraversalError,
    OutputError,
    DEFAULT_OUTPUT,
)

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="treecat",
        description="Concatenate the files of a directory tree into one text file.",
    )
    p.add_argument(
        "--ext",
        default="",
        help="Comma-separated list of file extensions to include (e.g. go,py,tsx)",
    )
    p.add_argument(
        "--target",
        type=Path,
        help="Directory to scan (default: current working directory)",
    )
    p.add_argument(
        "--output",
        type=Path,
        default=Path(DEFAULT_OUTPUT),
        help=f"Output file (default: {DEFAULT_OUTPUT} in the current working directory)",
    )
    p.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra exclusion patterns (one per line)",
    )
    p.add_argument(
        "--gitignore-semantics",
        action="store_true",
        help="Match patterns with full .gitignore rules (negation, **)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)

def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)

        try:
            cwd = Path.cwd()
        except OSError as e:
            error(f"Could not get current working directory: {e}")
            sys.exit(1)

        extra_patterns: List[str] = []
        if ns.config:
            try:
                extra_patterns = load_extra_patterns(cwd / ns.config)
                if ns.verbose:
                    info(f"Loaded extra patterns from {ns.config}")
            except ConfigFileError as e:
                error(str(e))
                sys.exit(1)

        config = Config.from_options(
            ext=ns.ext,
            target=ns.target,
            output=ns.output,
            cwd=cwd,
            extra_patterns=tuple(extra_patterns),
            gitignore_semantics=ns.gitignore_semantics,
            verbose=ns.verbose,
        )

        try:
            out_path = run(config)
        except TraversalError as e:
            error(f"Error walking the path {config.target}: {e}")
            sys.exit(1)
        except OutputError as e:
            error(str(e))
            sys.exit(1)

        success(f"Successfully wrote to {out_path}")

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        error(f"Unexpected error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
