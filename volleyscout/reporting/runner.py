"""Concurrent report queries over a single ledger version.

Queries only read the immutable ledger they are given, so any number of
them may run in parallel with each other and with a recording session
that keeps publishing newer versions.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from threading import Event

from volleyscout.core.config import get_config
from volleyscout.core.ledger import Ledger
from volleyscout.reporting.query import FilteredReport, ReportFilter, query

logger = logging.getLogger(__name__)


def run_queries(
    ledger: Ledger,
    filters: Sequence[ReportFilter],
    timeout: float | None = None,
    max_workers: int | None = None,
) -> list[FilteredReport]:
    """
    Run one query per filter against ``ledger``.

    Args:
        ledger: Ledger version every query reads
        filters: Filters to evaluate
        timeout: Seconds to wait for all queries (default: config report.query_timeout_seconds)
        max_workers: Thread pool size (default: config report.max_workers)

    Returns:
        Reports in the same order as ``filters``

    Raises:
        TimeoutError: If the queries did not all finish in time. Unfinished
            queries are cancelled before this is raised.
    """
    if not filters:
        return []

    config = get_config().report
    if timeout is None:
        timeout = config.query_timeout_seconds
    if max_workers is None:
        max_workers = config.max_workers

    cancel = Event()
    pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="volleyscout-query")
    try:
        futures = [pool.submit(query, ledger, f, cancel) for f in filters]
        _, pending = wait(futures, timeout=timeout)
        if pending:
            cancel.set()
            logger.warning(
                "Cancelled %d of %d queries after %.1fs", len(pending), len(futures), timeout
            )
            raise TimeoutError(
                f"{len(pending)} of {len(futures)} queries did not finish within {timeout}s"
            )
        return [f.result() for f in futures]
    finally:
        pool.shutdown(wait=True, cancel_futures=True)
