"""
Transaction submitter - Blocking and non-blocking submission over a store.

The submitter only shapes the call: ordering, conflict detection and
durability belong to the DatabaseConnection it wraps. Failures are
surfaced as SubmissionError and never retried here.
"""

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass

from .exceptions import SubmissionError, SubmissionFailure
from .ports import DatabaseConnection
from .transaction import TransactionRequest, TransactionResult

logger = logging.getLogger(__name__)


@dataclass
class TransactionSubmitter:
    """
    Domain service for submitting transaction requests.

    transact() waits for the store to acknowledge; transact_async()
    hands the same work to an executor and returns a Future resolving
    to an identical TransactionResult.
    """

    connection: DatabaseConnection
    executor: Executor | None = None

    def transact(self, request: TransactionRequest) -> TransactionResult:
        """
        Submit a request and block until the store acknowledges it.

        Not idempotent: submitting the same request twice writes two
        transactions with distinct facts and, for placeholders, distinct
        entities.

        Args:
            request: Ordered assign/retract operations

        Returns:
            TransactionResult for the accepted transaction

        Raises:
            SubmissionError: Rejected by the store or connectivity lost
        """
        logger.debug("Submitting %r", request)
        try:
            result = self.connection.submit(request)
        except SubmissionError as e:
            logger.warning("Transaction rejected (%s): %s", e.reason.value, e.message)
            raise
        except (ConnectionError, TimeoutError) as e:
            logger.warning("Transaction failed, store unreachable: %s", e)
            raise SubmissionError(SubmissionFailure.CONNECTIVITY, str(e)) from e

        logger.info(
            "Transaction %d accepted: %d facts, %d placeholders",
            result.tx,
            len(result.tx_data),
            len(result.tempids),
        )
        return result

    def transact_async(self, request: TransactionRequest) -> "Future[TransactionResult]":
        """
        Submit a request without waiting for acknowledgment.

        The returned Future yields the TransactionResult, or raises
        SubmissionError from result().

        Raises:
            RuntimeError: No executor configured
        """
        if self.executor is None:
            raise RuntimeError("TransactionSubmitter has no executor for async submission")
        return self.executor.submit(self.transact, request)

    @staticmethod
    def resolve_tempid(result: TransactionResult, placeholder: int) -> int:
        """
        Map a placeholder from the original request to its permanent id.

        Raises:
            UnknownPlaceholderError: placeholder was not part of the request
        """
        return result.resolve_tempid(placeholder)
