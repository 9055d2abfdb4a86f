"""
CLI interface for convodyn
"""

import sys
import json
import logging
import argparse

from . import config
from .llm_client import LLMClient
from .parser import TranscriptParser, validate_format
from .pipeline import run_analysis

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def analyze_file(
    filepath: str,
    output_file: str = None,
    context: str = None,
    draft: str = None,
    mock: bool = False,
) -> dict:
    """
    Analyze a transcript file.

    Args:
        filepath: Path to a "You:/Them:" transcript
        output_file: Optional output JSON file
        context: Relationship context tag
        draft: Optional unsent reply to score
        mock: Use the canned model response (no API call)

    Returns:
        Analysis result dict
    """
    logger.info(f"Analyzing file: {filepath}")

    valid, msg = config.validate_config()
    if not valid and not mock:
        logger.error(f"Configuration error: {msg}")
        sys.exit(1)

    try:
        messages = TranscriptParser().parse_file(filepath)
    except OSError as e:
        logger.error(f"Failed to read file: {e}")
        sys.exit(1)

    client = LLMClient(mock_mode=mock)
    result = run_analysis(messages, context=context, client=client, draft=draft)

    if output_file:
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(result, f, indent=2, ensure_ascii=False)
        logger.info(f"Result saved to {output_file}")
    else:
        print(json.dumps(result, indent=2, ensure_ascii=False))

    return result


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="convodyn - conversation dynamics analysis"
    )

    parser.add_argument(
        "command",
        choices=["analyze", "validate"],
        help="Command to run"
    )

    parser.add_argument(
        "filepath",
        help="Path to a transcript with You:/Them: lines"
    )

    parser.add_argument(
        "-o", "--output",
        dest="output_file",
        help="Output JSON file path"
    )

    parser.add_argument(
        "-c", "--context",
        default=None,
        help="Relationship context (crush, friend, work, family, ex, newmatch)"
    )

    parser.add_argument(
        "-d", "--draft",
        default=None,
        help="Unsent reply to factor into health/risk scores"
    )

    parser.add_argument(
        "--mock",
        action="store_true",
        help="Use a canned model response (for testing)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.command == "validate":
        valid, msg = validate_format(args.filepath)
        print(f"Valid: {valid} - {msg}")
        sys.exit(0 if valid else 1)

    elif args.command == "analyze":
        try:
            result = analyze_file(
                args.filepath,
                output_file=args.output_file,
                context=args.context,
                draft=args.draft,
                mock=args.mock,
            )
            logger.info(f"Health: {result['scores']['health_score']}/100")
            logger.info(f"Move: {result['strategy']['move']['one_liner']}")
        except Exception as e:
            logger.error(f"Analysis failed: {e}", exc_info=True)
            sys.exit(1)


if __name__ == "__main__":
    main()
