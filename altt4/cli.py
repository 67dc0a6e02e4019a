"""
Command line entry point for altt4.

Discovers templates and include files under a directory, renders every
template and writes the outputs next to each other in an output directory.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .pipeline.generator import TemplateGenerator
from .template.sources import discover_sources
from .utils.config import Altt4Config, set_config
from .utils.exceptions import Altt4Error
from .utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser of ``altt4-generate``."""
    parser = argparse.ArgumentParser(description="Render text templates into source files")
    parser.add_argument("directory", help="Directory searched for templates and include files")
    parser.add_argument("-o", "--output", help="Output directory (default: the template directory)")
    parser.add_argument("--culture", help="Locale name used by the generated programs")
    parser.add_argument("--config", help="Configuration file (JSON or YAML)")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def run(argv: Optional[List[str]] = None) -> int:
    """
    Render every template under a directory.

    Args:
        argv: Command line arguments without the program name

    Returns:
        Process exit code: 0 on success, 1 when any error diagnostic was
        reported, 2 on invalid input
    """
    args = build_parser().parse_args(argv)

    config = Altt4Config(args.config)
    set_config(config)

    log_file = config.logging.log_file if config.logging.enable_file_logging else None
    setup_logging(args.log_level or config.logging.level, log_file)

    root = Path(args.directory)
    if not root.is_dir():
        print(f"Not a directory: {root}", file=sys.stderr)
        return 2

    output_dir = Path(args.output) if args.output else root
    output_dir.mkdir(parents=True, exist_ok=True)

    templates = discover_sources(root, [config.template.template_extension])
    includes = discover_sources(root, [config.template.include_extension])
    logger.info(f"Found {len(templates)} templates and {len(includes)} include files under {root}")

    generator = TemplateGenerator(config, args.culture)
    results = generator.generate(templates, includes)

    failed = False
    for generated in results:
        target = output_dir / generated.hint_name
        target.write_text(generated.text, encoding="utf-8")
        print(f"{generated.template_path} -> {target}")

        for diagnostic in generated.diagnostics:
            print(diagnostic.format(), file=sys.stderr)
        failed = failed or generated.has_errors

    return 1 if failed else 0


def main() -> None:
    """Main entry point for the altt4-generate command."""
    try:
        sys.exit(run())
    except Altt4Error as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == '__main__':
    main()
