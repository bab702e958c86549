"""
Command-line entry point: answer a question from the local index.

Usage:
    python ask.py "Your question here"
"""
import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from config import PipelineConfig, LOG_LEVEL
from logger import setup_logging
from models.answer import AnswerResult
from services.errors import ServiceClientError, UsageError
from services.rag_pipeline import RAGPipeline

logger = logging.getLogger(__name__)

USAGE = 'Usage:\n  python ask.py "Your question here"'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Answer a question from the local document index")
    parser.add_argument("question", nargs="*", help="Question text")
    parser.add_argument("--index", help="Index file (default from INDEX_PATH)")
    parser.add_argument("--cache-dir", help="Cache directory (default from CACHE_DIR)")
    parser.add_argument("--no-rewrites", action="store_true", help="Skip multi-query rewrites")
    parser.add_argument("--no-hyde", action="store_true", help="Skip the hypothetical answer")
    parser.add_argument("--per-query-top-k", type=int)
    parser.add_argument("--final-top-k", type=int)
    parser.add_argument("--k", dest="diverse_k", type=int, help="Number of chunks in the context")
    parser.add_argument("--lambda", dest="mmr_lambda", type=float, help="MMR relevance weight")
    parser.add_argument("--min-keep", type=float, help="MMR acceptance threshold")
    parser.add_argument("--log-level", default=LOG_LEVEL)
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")
    parser.add_argument("--debug", action="store_true", help="Print rewrites, HyDE and sources")
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    config = PipelineConfig()
    overrides = {
        "index_path": args.index,
        "cache_dir": args.cache_dir,
        "per_query_top_k": args.per_query_top_k,
        "final_top_k": args.final_top_k,
        "diverse_k": args.diverse_k,
        "mmr_lambda": args.mmr_lambda,
        "min_keep": args.min_keep,
    }
    config = replace(config, **{key: value for key, value in overrides.items() if value is not None})
    if args.no_rewrites:
        config.use_rewrites = False
    if args.no_hyde:
        config.use_hyde = False
    return config


def print_result(result: AnswerResult, debug: bool = False) -> None:
    print("\n===== ANSWER =====\n")
    print(result.answer)

    if debug:
        hyde = result.hypothetical
        print("\n===== DEBUG (RAG) =====\n")
        print("Query rewrites:", result.rewrites)
        print("HyDE:", hyde[:200] + ("..." if len(hyde) > 200 else ""))
        print("Selected sources:", result.selected_ids)
        print("Context tokens:", result.context_tokens)
        if result.degraded:
            print("Augmentation degraded: quota exhausted, answered from the question alone")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    question = " ".join(args.question).strip()
    if not question:
        print(USAGE)
        return 1

    setup_logging(args.log_level, json_output=args.json_logs)

    pipeline = None
    try:
        config = config_from_args(args)
        pipeline = RAGPipeline.from_config(config)
        result = pipeline.ask(question)
    except UsageError:
        print(USAGE)
        return 1
    except ServiceClientError as e:
        logger.error(f"Unrecoverable service error {e.error.code}: {e.error.message}")
        return 1
    except Exception as e:
        logger.error(f"Failed to answer question: {e}", exc_info=True)
        return 1
    finally:
        if pipeline is not None:
            pipeline.close()

    print_result(result, debug=args.debug)
    return 0


if __name__ == "__main__":
    sys.exit(main())
