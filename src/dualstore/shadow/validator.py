"""
ConsistencyValidator - Best-effort comparison of primary and secondary reads.

When consistency validation is enabled, the dispatcher reads from both
stores and hands the two results here. The comparison is by result count
only; the outcome is reported through logs and the
``dualstore.consistency.checks`` counter and never changes what the caller
receives.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from dualstore.observability import (
    ATTR_OPERATION,
    DualStoreMetrics,
    Tracer,
    create_tracer,
)
from dualstore.services.results import Result

logger = logging.getLogger(__name__)


class ValidationOutcome(Enum):
    """
    Result of one consistency comparison.

    Attributes:
        PASS: Both results are lists of equal length.
        FAIL: Both results are lists of different lengths.
        SKIPPED: A result failed or is not list-typed; nothing to compare.
        ERROR: The comparison itself raised.
    """

    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"
    ERROR = "error"


class ConsistencyValidator:
    """
    Compares result counts from the two stores.

    Example:
        >>> validator = ConsistencyValidator()
        >>> validator.validate("findFlights", Result.of([1, 2]), Result.of([1, 2, 3]))
        <ValidationOutcome.FAIL: 'fail'>
    """

    def __init__(
        self,
        metrics: DualStoreMetrics | None = None,
        *,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        self._metrics = metrics or DualStoreMetrics(enable_metrics=False)
        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    @property
    def metrics(self) -> DualStoreMetrics:
        """Metrics container comparisons are recorded against."""
        return self._metrics

    def validate(
        self,
        operation: str,
        primary: Result[Any],
        secondary: Result[Any],
    ) -> ValidationOutcome:
        """
        Compare the primary and secondary results of ``operation``.

        Never raises.

        Args:
            operation: Operation name used in the log message and metric label.
            primary: Result from the store that served the caller.
            secondary: Result from the other store.

        Returns:
            The comparison outcome (informational only).
        """
        try:
            with self._tracer.span(
                "dualstore.consistency_validator.validate",
                {ATTR_OPERATION: operation},
            ):
                return self._compare(operation, primary, secondary)
        except Exception as e:
            logger.error(
                "Consistency validation error for %s: %s",
                operation,
                e,
                exc_info=True,
                extra={"operation": operation},
            )
            return ValidationOutcome.ERROR

    def _compare(
        self,
        operation: str,
        primary: Result[Any],
        secondary: Result[Any],
    ) -> ValidationOutcome:
        if not (primary.status and secondary.status and primary.is_list and secondary.is_list):
            logger.debug(
                "Consistency validation skipped for %s: results are not comparable",
                operation,
                extra={"operation": operation},
            )
            return ValidationOutcome.SKIPPED

        primary_count = len(primary.data)
        secondary_count = len(secondary.data)

        if primary_count != secondary_count:
            logger.warning(
                "Consistency validation failed for %s: "
                "Primary has %d results, secondary has %d results",
                operation,
                primary_count,
                secondary_count,
                extra={
                    "operation": operation,
                    "primary_count": primary_count,
                    "secondary_count": secondary_count,
                },
            )
            self._metrics.record_consistency_check(operation, ValidationOutcome.FAIL.value)
            return ValidationOutcome.FAIL

        logger.debug(
            "Consistency validation passed for %s: %d results",
            operation,
            primary_count,
            extra={"operation": operation, "count": primary_count},
        )
        self._metrics.record_consistency_check(operation, ValidationOutcome.PASS.value)
        return ValidationOutcome.PASS


__all__ = [
    "ConsistencyValidator",
    "ValidationOutcome",
]
