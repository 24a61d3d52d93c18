# reelsync/application/outcome/outcome_provider.py
import asyncio
import dataclasses
import logging
from typing import Optional, Union, Set

from reelsync.domain.errors import FailureReason, OutcomeFailure
from reelsync.domain.session.entities.account_state import AccountState
from reelsync.domain.session.entities.outcome import Outcome
from reelsync.infrastructure.config.engine_config import ProviderConfig
from .ledger_client import (
    LedgerClient, LedgerError, TransactionUnderpricedError, UserRejectedError,
    InsufficientFundsError, MalformedReceiptError, FeeParameters,
)
from .local_outcome import LocalOutcomeGenerator
from .result_parser import parse_spin_receipt


ProviderResult = Union[Outcome, OutcomeFailure]


class OutcomeProvider:
    """
    Computes the outcome of one spin attempt.

    ``request_outcome`` never raises for expected failures; it resolves to
    either an Outcome or an OutcomeFailure. At most one request is in flight:
    a second call while one is outstanding fails immediately with
    ALREADY_IN_PROGRESS instead of queuing. Every submission is bounded by
    ``submit_timeout``, so a ledger that never answers releases the guard.

    Modes:
        remote                -- ledger only, failures go back to the caller
        local                 -- local generator only
        remote_with_fallback  -- ledger, local draw once the retry budget is spent
    """
    def __init__(self, config: ProviderConfig, local_generator: LocalOutcomeGenerator,
                 ledger_client: Optional[LedgerClient] = None,
                 account: Optional[AccountState] = None):
        self.logger = logging.getLogger("application.outcome.provider")
        self.config = config
        self.local_generator = local_generator
        self.ledger_client = ledger_client
        self.account = account if account is not None else AccountState()
        self.base_fee = FeeParameters.from_dict(config.base_fee)

        if config.mode != "local" and ledger_client is None:
            raise ValueError(f"Provider mode '{config.mode}' needs a ledger client")

        self.busy = False
        self.current_attempt: Optional[str] = None
        self.submissions = 0  # transactions sent over the provider's lifetime
        self._background_tasks: Set[asyncio.Task] = set()

    @property
    def mode(self) -> str:
        return self.config.mode

    async def request_outcome(self, attempt_id: str) -> ProviderResult:
        """
        Args:
            attempt_id: Id of the spin session asking for an outcome
        """
        if self.busy:
            self.logger.warning(f"Outcome requested for {attempt_id} while "
                                f"{self.current_attempt} is still outstanding")
            return OutcomeFailure(FailureReason.ALREADY_IN_PROGRESS,
                                  f"attempt {self.current_attempt} still outstanding")

        self.busy = True
        self.current_attempt = attempt_id
        try:
            if self.mode == "local":
                return self.local_generator.draw()

            result = await self._request_remote(attempt_id)
            if (isinstance(result, OutcomeFailure)
                    and result.reason is FailureReason.NETWORK_CONGESTED
                    and self.mode == "remote_with_fallback"):
                self.logger.warning(f"Retry budget spent for {attempt_id}, drawing a local outcome")
                return self.local_generator.draw().as_fallback(result.reason)
            return result
        finally:
            self.busy = False
            self.current_attempt = None

    async def _request_remote(self, attempt_id: str) -> ProviderResult:
        cost = self.account.spin_cost(self.config.spin_cost, self.config.discounted_spin_cost)
        fee = self.base_fee
        attempt = 0

        while True:
            attempt += 1
            self.submissions += 1
            self.logger.info(f"Submitting spin {attempt_id} (try {attempt}, cost {cost} "
                             f"{self.config.currency}, max fee {fee.max_fee_per_gas})")
            try:
                receipt = await asyncio.wait_for(self.ledger_client.submit_spin(cost, fee),
                                                 timeout=self.config.submit_timeout)
            except TransactionUnderpricedError as e:
                if attempt > self.config.max_retries:
                    self.logger.error(f"Spin {attempt_id} still underpriced after "
                                      f"{self.config.max_retries} retries: {e}")
                    return OutcomeFailure(FailureReason.NETWORK_CONGESTED, str(e))
                fee = fee.escalate(self.config.fee_multiplier)
                backoff = self.config.retry_backoff * attempt
                self.logger.warning(f"Spin {attempt_id} underpriced, retrying in {backoff:.2f}s "
                                    f"with max fee {fee.max_fee_per_gas}")
                await asyncio.sleep(backoff)
                continue
            except asyncio.TimeoutError:
                # the transaction may still confirm, so it is never re-submitted
                self.logger.error(f"Spin {attempt_id}: no receipt after {self.config.submit_timeout}s")
                return OutcomeFailure(FailureReason.LEDGER_ERROR,
                                      f"no receipt after {self.config.submit_timeout}s")
            except UserRejectedError as e:
                self.logger.info(f"Spin {attempt_id} rejected by the user")
                return OutcomeFailure(FailureReason.USER_REJECTED, str(e))
            except InsufficientFundsError as e:
                self.logger.warning(f"Spin {attempt_id}: insufficient funds")
                return OutcomeFailure(FailureReason.INSUFFICIENT_FUNDS, str(e))
            except MalformedReceiptError as e:
                self.logger.error(f"Spin {attempt_id}: malformed receipt: {e}")
                return OutcomeFailure(FailureReason.MALFORMED_RESULT, str(e))
            except LedgerError as e:
                self.logger.error(f"Spin {attempt_id}: ledger error: {e}")
                return OutcomeFailure(FailureReason.LEDGER_ERROR, str(e))

            try:
                outcome = dataclasses.replace(parse_spin_receipt(receipt), spin_cost=cost)
            except MalformedReceiptError as e:
                self.logger.error(f"Spin {attempt_id}: {e}")
                return OutcomeFailure(FailureReason.MALFORMED_RESULT, str(e))

            self.logger.info(f"Spin {attempt_id} confirmed in {outcome.reference}")
            self._schedule_refresh()
            return outcome

    def _schedule_refresh(self):
        task = asyncio.get_running_loop().create_task(self.refresh_account_state())
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def refresh_account_state(self) -> bool:
        """
        Best-effort read of the account from the ledger.

        Returns:
            True if the account view was refreshed
        """
        if self.ledger_client is None:
            return False
        try:
            snapshot = await self.ledger_client.fetch_account_state()
            self.account.apply_snapshot(snapshot)
            return True
        except Exception as e:
            # never affects the outcome already returned
            self.logger.warning(f"Account refresh failed: {e}")
            return False

    async def wait_for_background_tasks(self):
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
