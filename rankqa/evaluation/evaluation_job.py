#!/usr/bin/env python3
"""
Evaluation Job for scoring a search backend against relevance judgments.

Loads rated requests (query intents with their query specification and
judgments), executes every specification against the search backend or
against ranked lists recorded earlier, computes Precision@N per intent and
writes the quality report as JSON.

Usage:
    python -m rankqa.evaluation.evaluation_job \
        --requests-path data/rated_requests.json \
        --backend-url http://localhost:9200 \
        --n 10 \
        --output data/evaluation/report.json

    # Offline, re-scoring recorded result lists
    python -m rankqa.evaluation.evaluation_job \
        --requests-path data/rated_requests.json \
        --ranked-lists-path data/ranked_lists.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from rankqa.domain.entities import RatedRequest
from rankqa.domain.errors import AllIntentsFailed, MalformedSpecification
from rankqa.domain.ports import QueryExecutor
from rankqa.domain.value_objects import QualityReport, QuerySpecification
from rankqa.evaluation.evaluation_service import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_QUERY_TIMEOUT_S,
    EvaluationService,
)
from rankqa.evaluation.metrics import PrecisionAtN
from rankqa.infrastructure.search.elasticsearch_query_executor import ElasticsearchQueryExecutor
from rankqa.infrastructure.search.recorded_query_executor import RecordedQueryExecutor

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_REQUESTS_PATH = "data/rated_requests.json"
DEFAULT_OUTPUT_PATH = "data/evaluation/report.json"
DEFAULT_N = 10

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_rated_request(item: Dict[str, Any]) -> RatedRequest:
    """Build a RatedRequest from one JSON record."""
    if not isinstance(item, dict):
        raise ValueError(f"Rated request must be a JSON object, got {type(item).__name__}")

    spec_data = item.get("spec")
    if not isinstance(spec_data, dict):
        raise MalformedSpecification(
            f"Rated request '{item.get('intent_id')}' has no 'spec' object"
        )

    return RatedRequest(
        intent_id=item.get("intent_id", ""),
        spec=QuerySpecification.from_dict(spec_data),
        ratings=item.get("ratings") or {},
    )


def load_rated_requests(path: str) -> List[RatedRequest]:
    """Load rated requests from a JSON list."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of rated requests")

    return [parse_rated_request(item) for item in data]


def build_query_executor(
    backend_url: Optional[str] = None,
    ranked_lists_path: Optional[str] = None,
    request_timeout_s: float = DEFAULT_QUERY_TIMEOUT_S,
) -> QueryExecutor:
    """Pick the recorded lists when given, the live backend otherwise."""
    if ranked_lists_path:
        logger.info("Replaying ranked lists from %s", ranked_lists_path)
        return RecordedQueryExecutor.from_file(ranked_lists_path)
    if backend_url:
        logger.info("Querying search backend at %s", backend_url)
        return ElasticsearchQueryExecutor(backend_url, request_timeout_s=request_timeout_s)
    raise ValueError("Either backend_url or ranked_lists_path is required")


def log_report_summary(report: QualityReport) -> None:
    logger.info("-" * 70)
    for result in report.results:
        score = f"{result.score:.4f}" if result.is_defined else "undefined"
        logger.info(
            "  %-30s spec=%-5d %s=%s unknown=%d",
            result.intent_id,
            result.spec_id,
            report.metric_name,
            score,
            len(result.unknown_doc_ids),
        )
    for failure in report.failures:
        logger.info(
            "  %-30s spec=%-5d FAILED: %s",
            failure.intent_id,
            failure.spec_id,
            failure.reason,
        )
    logger.info("-" * 70)
    if report.aggregate_defined:
        logger.info("Aggregate %s: %.4f", report.metric_name, report.aggregate_score)
    else:
        logger.info("Aggregate %s: undefined (no judged results)", report.metric_name)


def main(
    requests_path: str = DEFAULT_REQUESTS_PATH,
    output_path: str = DEFAULT_OUTPUT_PATH,
    backend_url: Optional[str] = None,
    ranked_lists_path: Optional[str] = None,
    n: int = DEFAULT_N,
    max_workers: int = DEFAULT_MAX_WORKERS,
    timeout_s: float = DEFAULT_QUERY_TIMEOUT_S,
    query_executor: Optional[QueryExecutor] = None,
) -> QualityReport:
    """
    Main entry point for the evaluation job.

    Steps:
    1. Load rated requests from JSON
    2. Build the query executor (live backend or recorded lists)
    3. Run the evaluation
    4. Save the report
    """
    logger.info("=" * 70)
    logger.info("EVALUATION JOB")
    logger.info("=" * 70)

    # Step 1: Load rated requests
    logger.info("Step 1: Loading rated requests from %s...", requests_path)
    requests = load_rated_requests(requests_path)
    logger.info(
        "Loaded %d rated requests covering %d intents",
        len(requests),
        len({r.intent_id for r in requests}),
    )

    # Step 2: Query executor
    logger.info("Step 2: Preparing query executor...")
    if query_executor is None:
        query_executor = build_query_executor(backend_url, ranked_lists_path, timeout_s)

    # Step 3: Evaluate
    logger.info("Step 3: Running evaluation...")
    metric = PrecisionAtN(n)
    service = EvaluationService(query_executor, max_workers=max_workers, query_timeout_s=timeout_s)
    report = service.run_evaluation(requests, metric)
    log_report_summary(report)

    # Step 4: Save report
    logger.info("Step 4: Saving report...")
    output_path_obj = Path(output_path)
    output_path_obj.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path_obj, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)

    logger.info("Saved report to %s", output_path_obj)
    logger.info("=" * 70)
    logger.info("EVALUATION COMPLETE")
    logger.info("=" * 70)

    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Evaluate search ranking quality with Precision@N",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--requests-path",
        type=str,
        default=DEFAULT_REQUESTS_PATH,
        help=f"Path to rated requests JSON (default: {DEFAULT_REQUESTS_PATH})",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT_PATH,
        help=f"Path for output report JSON (default: {DEFAULT_OUTPUT_PATH})",
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--backend-url",
        type=str,
        default=None,
        help="Search backend URL, e.g. http://localhost:9200",
    )
    source.add_argument(
        "--ranked-lists-path",
        type=str,
        default=None,
        help="JSON object of recorded ranked lists keyed by spec_id",
    )

    parser.add_argument(
        "--n",
        type=int,
        default=DEFAULT_N,
        help=f"Number of top results to evaluate (default: {DEFAULT_N})",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help=f"Queries executed in parallel (default: {DEFAULT_MAX_WORKERS})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_QUERY_TIMEOUT_S,
        help=f"Per-query timeout in seconds (default: {DEFAULT_QUERY_TIMEOUT_S})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-intent details",
    )
    return parser


def cli(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, run the job and return the process exit status."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    try:
        main(
            requests_path=args.requests_path,
            output_path=args.output,
            backend_url=args.backend_url,
            ranked_lists_path=args.ranked_lists_path,
            n=args.n,
            max_workers=args.max_workers,
            timeout_s=args.timeout,
        )
    except KeyboardInterrupt:
        logger.info("\nEvaluation interrupted by user")
        return 130
    except AllIntentsFailed as e:
        for failure in e.failures:
            logger.error("Intent '%s' (spec %d): %s", failure.intent_id, failure.spec_id, failure.reason)
        logger.error(f"Evaluation failed: {e}")
        return 1
    except Exception as e:
        logger.error(f"Evaluation failed: {e}", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(cli())
