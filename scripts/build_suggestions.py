"""Script to build suggestion groups from a parsed document JSON file.

Usage:
    python scripts/build_suggestions.py document.json [--reference-date 2026-03-10] [--llm-fallback]
"""

import argparse
import json
import logging
import sys
import os

from pydantic import ValidationError

# Ensure the main package is in the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from suggestion_engine.core.config import get_settings
from suggestion_engine.core.logging_config import setup_logging
from suggestion_engine.features.ai_fallback import LLMGroupFallback
from suggestion_engine.features.schema_validation import SchemaValidationError
from suggestion_engine.features.suggestion_service import build_suggestion_groups

logger = logging.getLogger(__name__)

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build review-ready suggestion groups from a parsed document.")
    parser.add_argument("document", help="Path to a ParsedDocument JSON file.")
    parser.add_argument("--reference-date", default=None, help="YYYY-MM-DD used for items without a date.")
    parser.add_argument("--llm-fallback", action="store_true", help="Use the Ollama-backed grouping fallback.")
    parser.add_argument("--log-level", default=None, help="Log level (defaults to settings.log_level).")
    return parser.parse_args(argv)

def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    # stdout carries the JSON output
    setup_logging(args.log_level or settings.log_level, stream="ext://sys.stderr")

    try:
        with open(args.document, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read document {args.document}: {e}")
        return 1

    strategy = None
    if args.llm_fallback or settings.llm_fallback_enabled:
        # Imported lazily so the ollama client is only needed when requested
        from suggestion_engine.llms.ollama_client import OllamaClient
        strategy = LLMGroupFallback(OllamaClient(settings))

    try:
        output = build_suggestion_groups(
            document,
            reference_date=args.reference_date,
            ai_group_fallback=strategy,
            settings=settings,
        )
    except SchemaValidationError as e:
        logger.error(f"Suggestion engine produced invalid output: {e}")
        return 1
    except ValidationError as e:
        logger.error(f"Invalid input in document {args.document} or cue file {settings.cue_file}: {e}")
        return 1
    except OSError as e:
        logger.error(f"Could not read cue file {settings.cue_file}: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid cue file {settings.cue_file}: {e}")
        return 1

    json.dump(output, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0

if __name__ == "__main__":
    sys.exit(main())
