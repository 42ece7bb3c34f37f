"""Command-line interface for building the tag index.

This script builds the TagRec similarity index from an ``item_id,tag`` file,
or reuses the index already present in the output directory.

Example:
    Build an index with default settings:
        $ python scripts/build_index.py data/tags.csv

    Build into a custom directory:
        $ python scripts/build_index.py data/tags.csv --index-dir index/prod
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tagrec import config
from tagrec.recommender.exceptions import BuildError
from tagrec.recommender.index import build_or_reuse_index
from tagrec.recommender.similarity import SimilarityIndex


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the script.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise, use INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Build the tag similarity index from an item_id,tag file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build with default settings
  python scripts/build_index.py data/tags.csv

  # Build into a custom directory with verbose logging
  python scripts/build_index.py data/tags.csv --index-dir index/prod --verbose
        """,
    )

    parser.add_argument(
        "tags_path",
        type=str,
        help="Path to the tag file: one item_id,tag row per line, "
        "rows of one item contiguous",
    )

    parser.add_argument(
        "--index-dir",
        type=str,
        default=str(config.INDEX_DIR),
        help=f"Directory the index is written to (default: {config.INDEX_DIR}). "
        "An existing complete index there is reused as-is.",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args()


def main() -> int:
    """Main entry point for the build script.

    Returns:
        Exit code: 0 on success, 1 on error.
    """
    args = parse_arguments()
    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    try:
        built = build_or_reuse_index(args.tags_path, args.index_dir)
        index = SimilarityIndex.load(args.index_dir)

        logger.info("=" * 70)
        logger.info("Index Summary")
        logger.info("=" * 70)
        logger.info(f"Action:     {'built' if built else 'reused existing index'}")
        logger.info(f"Documents:  {index.num_documents}")
        logger.info(f"Terms:      {index.num_terms}")
        logger.info(f"Location:   {Path(args.index_dir).absolute()}")
        logger.info("=" * 70)
        return 0

    except BuildError as e:
        logger.error(f"Build error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Build interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
