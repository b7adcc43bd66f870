"""
Error kinds raised by the evaluation domain.

Construction and validation failures derive from ValueError so callers can
treat them as bad input. Failures that happen while a run is executing derive
from RuntimeError.
"""

from typing import Sequence


class RankQualityError(Exception):
    """Base class for all evaluation errors."""


class MalformedJudgment(RankQualityError, ValueError):
    """A relevance judgment is unparseable or conflicts with another one."""


class InvalidConfiguration(RankQualityError, ValueError):
    """A metric or service parameter is out of range."""


class MalformedSpecification(RankQualityError, ValueError):
    """A query specification cannot be executed as given."""


class DuplicateSpecId(RankQualityError, ValueError):
    """Two query specifications in one run share the same id."""

    def __init__(self, spec_id: int) -> None:
        super().__init__(f"spec_id {spec_id} is used by more than one request")
        self.spec_id = spec_id


class NoIntentsConfigured(RankQualityError, ValueError):
    """An evaluation run was started without any rated requests."""


class QueryExecutionError(RankQualityError, RuntimeError):
    """The search backend could not execute a query specification."""


class AllIntentsFailed(RankQualityError, RuntimeError):
    """No rated request in the run could be executed."""

    def __init__(self, failures: Sequence) -> None:
        super().__init__(
            f"All {len(failures)} intents failed query execution"
        )
        self.failures = tuple(failures)
