"""
Evaluation service driving one ranking quality run.

The service executes every rated request's query specification through a
QueryExecutor port, scores each returned ranked list with a Metric and
aggregates the per-intent scores into a QualityReport.

Queries run on a thread pool bounded by max_workers. A query that raises or
exceeds the per-query timeout is recorded as a failed intent and the run
continues with the remaining intents.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple

from rankqa.domain.entities import JudgmentSet, RatedRequest
from rankqa.domain.errors import (
    AllIntentsFailed,
    DuplicateSpecId,
    InvalidConfiguration,
    NoIntentsConfigured,
    QueryExecutionError,
)
from rankqa.domain.ports import Metric, QueryExecutor
from rankqa.domain.value_objects import (
    EvalResult,
    FailedIntent,
    QualityReport,
    UNDEFINED_PRECISION,
)
from rankqa.evaluation.metrics import aggregate_statistics

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4
DEFAULT_QUERY_TIMEOUT_S = 30.0
CANCELLED_REASON = "cancelled"

# Upper bound on how long the dispatch loop sleeps before re-checking
# the cancel event.
_CANCEL_POLL_INTERVAL_S = 0.05


class RunState(Enum):
    """Lifecycle of a single evaluation run."""

    PENDING = "pending"
    EXECUTING = "executing"
    AGGREGATING = "aggregating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class _QueryOutcome:
    ranked_list: Optional[Tuple[str, ...]] = None
    failure: Optional[str] = None


class EvaluationService:
    """
    Orchestrates an evaluation run across all configured query intents.

    A run moves through PENDING -> EXECUTING -> AGGREGATING -> COMPLETED,
    or ends in FAILED if executing or aggregating cannot produce a report.

    The service is backend-agnostic and depends only on port protocols.
    """

    def __init__(
        self,
        query_executor: QueryExecutor,
        max_workers: int = DEFAULT_MAX_WORKERS,
        query_timeout_s: float = DEFAULT_QUERY_TIMEOUT_S,
    ) -> None:
        """
        Initialize the evaluation service.

        Args:
            query_executor: Adapter that runs query specifications on the backend
            max_workers: Maximum number of queries in flight at once
            query_timeout_s: Seconds a single query may take before it is
                abandoned and recorded as failed

        Raises:
            InvalidConfiguration: If max_workers or query_timeout_s is not positive
        """
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise InvalidConfiguration(f"max_workers must be >= 1, got {max_workers!r}")
        if query_timeout_s is None or query_timeout_s <= 0:
            raise InvalidConfiguration(
                f"query_timeout_s must be > 0, got {query_timeout_s!r}"
            )

        self._query_executor = query_executor
        self._max_workers = max_workers
        self._query_timeout_s = float(query_timeout_s)
        self._run_state = threading.local()

    @property
    def last_run_state(self) -> Optional[RunState]:
        """
        State of the most recent run started on the calling thread.

        None before that thread's first run. Runs on other threads, such as
        concurrent API requests sharing one service, do not affect it.
        """
        return getattr(self._run_state, "state", None)

    def run_evaluation(
        self,
        requests: Sequence[RatedRequest],
        metric: Metric,
        cancel_event: Optional[threading.Event] = None,
    ) -> QualityReport:
        """
        Evaluate every rated request and aggregate the scores.

        Args:
            requests: Rated requests; the report keeps their order
            metric: Metric used to score each ranked list
            cancel_event: Optional event; once set, no further queries are
                dispatched and undispatched intents are recorded as cancelled

        Returns:
            QualityReport with per-intent results, failures and aggregate score

        Raises:
            NoIntentsConfigured: If requests is empty
            DuplicateSpecId: If two requests share a specification id
            MalformedJudgment: If requests sharing an intent disagree on a rating
            AllIntentsFailed: If no request could be executed
        """
        self._transition(RunState.PENDING)
        requests = tuple(requests)
        judgments = self._validate(requests, metric)

        logger.info(
            "Starting evaluation of %d intents with %s (max_workers=%d, timeout=%.1fs)",
            len(requests),
            metric.name,
            self._max_workers,
            self._query_timeout_s,
        )

        self._transition(RunState.EXECUTING)
        try:
            outcomes, cancelled = self._execute_all(requests, cancel_event)
        except Exception:
            self._transition(RunState.FAILED)
            raise

        self._transition(RunState.AGGREGATING)
        try:
            report = self._aggregate(requests, outcomes, judgments, metric, cancelled)
        except Exception:
            self._transition(RunState.FAILED)
            raise

        self._transition(RunState.COMPLETED)
        if report.aggregate_defined:
            logger.info(
                "Evaluation complete: %s=%.4f over %d scored intents, %d failed",
                metric.name,
                report.aggregate_score,
                int(report.statistics.get("count", 0)),
                len(report.failures),
            )
        else:
            logger.info(
                "Evaluation complete: %s undefined (no judged results), %d failed",
                metric.name,
                len(report.failures),
            )
        return report

    def _transition(self, state: RunState) -> None:
        logger.info("Evaluation run state: %s", state.value)
        self._run_state.state = state

    @staticmethod
    def _validate(requests: Tuple[RatedRequest, ...], metric: Metric) -> JudgmentSet:
        if not requests:
            raise NoIntentsConfigured("At least one rated request is required")

        if not callable(getattr(metric, "evaluate", None)):
            raise InvalidConfiguration(f"{metric!r} does not implement evaluate()")

        seen_spec_ids = set()
        for request in requests:
            if not isinstance(request, RatedRequest):
                raise TypeError(
                    f"Expected RatedRequest, got {type(request).__name__}"
                )
            if request.spec_id in seen_spec_ids:
                raise DuplicateSpecId(request.spec_id)
            seen_spec_ids.add(request.spec_id)

        return JudgmentSet.from_requests(requests)

    def _execute_all(
        self,
        requests: Tuple[RatedRequest, ...],
        cancel_event: Optional[threading.Event],
    ) -> Tuple[List[_QueryOutcome], bool]:
        """
        Run every query, at most max_workers at a time.

        Outcomes are stored by input index. A timed-out query is recorded as
        failed right away, but its thread keeps its slot until the backend
        call returns, so the backend never sees more than max_workers
        concurrent requests from one run.
        """
        total = len(requests)
        outcomes: List[Optional[_QueryOutcome]] = [None] * total
        in_flight: Dict[Future, Tuple[int, float]] = {}
        abandoned: Set[Future] = set()
        next_index = 0
        cancelled = False

        pool = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="rankqa-query")
        try:
            while next_index < total or in_flight:
                if cancel_event is not None and cancel_event.is_set() and next_index < total:
                    cancelled = True
                    logger.warning(
                        "Evaluation cancelled, %d intents will not be dispatched",
                        total - next_index,
                    )
                    for index in range(next_index, total):
                        outcomes[index] = _QueryOutcome(failure=CANCELLED_REASON)
                    next_index = total

                abandoned = {future for future in abandoned if not future.done()}
                while next_index < total and len(in_flight) + len(abandoned) < self._max_workers:
                    request = requests[next_index]
                    logger.debug(
                        "Dispatching intent '%s' (spec %d)", request.intent_id, request.spec_id
                    )
                    future = pool.submit(self._query_executor.execute_query, request.spec)
                    in_flight[future] = (next_index, time.monotonic() + self._query_timeout_s)
                    next_index += 1

                if not in_flight and next_index >= total:
                    continue

                # With every slot held by abandoned queries there is no
                # deadline to wake for, only a slot to free up.
                wait_s: Optional[float] = None
                if in_flight:
                    nearest_deadline = min(deadline for _, deadline in in_flight.values())
                    wait_s = max(0.0, nearest_deadline - time.monotonic())
                if cancel_event is not None:
                    wait_s = (
                        _CANCEL_POLL_INTERVAL_S
                        if wait_s is None
                        else min(wait_s, _CANCEL_POLL_INTERVAL_S)
                    )

                done, _ = wait(
                    list(in_flight) + list(abandoned), timeout=wait_s, return_when=FIRST_COMPLETED
                )
                for future in done:
                    if future in in_flight:
                        index, _ = in_flight.pop(future)
                        outcomes[index] = self._collect(requests[index], future)

                now = time.monotonic()
                for future, (index, deadline) in list(in_flight.items()):
                    if deadline <= now:
                        del in_flight[future]
                        if not future.cancel():
                            abandoned.add(future)
                        request = requests[index]
                        logger.warning(
                            "Query for intent '%s' (spec %d) timed out after %.1fs",
                            request.intent_id,
                            request.spec_id,
                            self._query_timeout_s,
                        )
                        outcomes[index] = _QueryOutcome(
                            failure=f"timed out after {self._query_timeout_s:g}s"
                        )
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        return outcomes, cancelled

    @staticmethod
    def _collect(request: RatedRequest, future: Future) -> _QueryOutcome:
        try:
            ranked_list = future.result()
        except QueryExecutionError as e:
            logger.warning(
                "Query for intent '%s' (spec %d) failed: %s",
                request.intent_id,
                request.spec_id,
                e,
            )
            return _QueryOutcome(failure=str(e))
        except Exception as e:
            logger.warning(
                "Query for intent '%s' (spec %d) raised %s: %s",
                request.intent_id,
                request.spec_id,
                type(e).__name__,
                e,
            )
            return _QueryOutcome(failure=f"{type(e).__name__}: {e}")

        if ranked_list is None:
            return _QueryOutcome(failure="search backend returned no result list")

        ranked = tuple(str(doc_id) for doc_id in ranked_list)
        logger.debug("Intent '%s' returned %d hits", request.intent_id, len(ranked))
        return _QueryOutcome(ranked_list=ranked)

    @staticmethod
    def _aggregate(
        requests: Tuple[RatedRequest, ...],
        outcomes: List[_QueryOutcome],
        judgments: JudgmentSet,
        metric: Metric,
        cancelled: bool,
    ) -> QualityReport:
        results: List[EvalResult] = []
        failures: List[FailedIntent] = []

        for request, outcome in zip(requests, outcomes):
            if outcome.failure is not None:
                failures.append(
                    FailedIntent(request.intent_id, request.spec_id, outcome.failure)
                )
                continue

            metric_result = metric.evaluate(
                outcome.ranked_list, judgments.for_intent(request.intent_id)
            )
            considered = metric_result.good + metric_result.bad + len(metric_result.unknown_doc_ids)
            results.append(
                EvalResult(
                    intent_id=request.intent_id,
                    spec_id=request.spec_id,
                    score=metric_result.score,
                    unknown_doc_ids=metric_result.unknown_doc_ids,
                    hits_considered=considered,
                )
            )
            logger.debug(
                "Intent '%s' (spec %d): %s=%r, %d unknown",
                request.intent_id,
                request.spec_id,
                metric.name,
                metric_result.score,
                len(metric_result.unknown_doc_ids),
            )

        if not results:
            raise AllIntentsFailed(failures)

        defined_scores = [r.score for r in results if r.is_defined]
        statistics = aggregate_statistics(defined_scores)
        aggregate = statistics["mean"] if defined_scores else UNDEFINED_PRECISION

        return QualityReport(
            metric_name=metric.name,
            results=tuple(results),
            failures=tuple(failures),
            aggregate_score=aggregate,
            statistics=statistics,
            cancelled=cancelled,
        )
