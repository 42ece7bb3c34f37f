"""CLI script for getting recommendations, predictions and neighborhoods.

Useful for testing and evaluation. Loads (building if needed) the tag index
and the ratings, then prints results to the console.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tagrec import config
from tagrec.recommender.exceptions import TagRecError
from tagrec.recommender.recommend import TagRecommender

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get tag-based recommendations for a user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/predict_cli.py 42
  python scripts/predict_cli.py 42 --top-n 5
  python scripts/predict_cli.py 42 --item 17
  python scripts/predict_cli.py 0 --similar 17 --nnbrs 5
        """
    )

    parser.add_argument("user_id", type=int, help="User ID to get recommendations for")
    parser.add_argument(
        "--top-n",
        type=int,
        default=config.DEFAULT_TOP_N,
        help=f"Number of recommendations to return (default: {config.DEFAULT_TOP_N})",
    )
    parser.add_argument(
        "--item",
        type=int,
        default=None,
        help="Predict the user's rating for this item instead of recommending",
    )
    parser.add_argument(
        "--similar",
        type=int,
        default=None,
        help="Print the tag neighborhood of this item instead of recommending",
    )
    parser.add_argument(
        "--nnbrs",
        type=int,
        default=config.DEFAULT_NEIGHBORHOOD_SIZE,
        help=f"Neighborhood size (default: {config.DEFAULT_NEIGHBORHOOD_SIZE})",
    )
    parser.add_argument("--tags", type=str, default=str(config.TAGS_PATH), help="Tag file")
    parser.add_argument(
        "--ratings", type=str, default=str(config.RATINGS_PATH), help="Ratings file"
    )
    parser.add_argument(
        "--index-dir", type=str, default=str(config.INDEX_DIR), help="Index directory"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    try:
        recommender = TagRecommender.from_paths(
            tags_path=args.tags,
            ratings_path=args.ratings,
            index_dir=args.index_dir,
            nnbrs=args.nnbrs,
        )
    except (TagRecError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.similar is not None:
        neighbors = recommender.similar_items(args.similar, args.nnbrs)
        print(f"\nItems most similar to item {args.similar}:")
        if not neighbors:
            print("  (none)")
        for item_id, score in neighbors:
            print(f"  {item_id:>8}  {score:.4f}")
    elif args.item is not None:
        prediction = recommender.predict(args.user_id, args.item)
        print(f"\nPrediction for user {args.user_id}, item {args.item}:")
        if prediction.has_rating:
            print(f"  {prediction.kind.value}: {prediction.rating:.4f}")
        else:
            print("  no prediction (no similar rated items)")
    else:
        recommendations = recommender.recommend(args.user_id, args.top_n)
        print(f"\nRecommendations for user {args.user_id}:")
        if not recommendations:
            print("  (none)")
        for item_id, score in recommendations:
            print(f"  {item_id:>8}  {score:.4f}")

    print()


if __name__ == "__main__":
    main()
