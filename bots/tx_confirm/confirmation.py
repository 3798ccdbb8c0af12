#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Wait for a transaction to be mined and explain the result.

``TransactionConfirmer.confirm`` polls for the receipt under the policy of
the target chain. A mined transaction ends as ``Success``, ``Reverted``
(diagnosed by simulation and revert decoding) or ``OtherFailure``. When no
receipt shows up the poll pass is retried on CI runners only, then the
outcome is ``TimedOut`` with a gas price explanation. Setting the
context's cancel event ends the confirmation with ``Cancelled``.

Expected outcomes are returned, never raised. Failures while building a
diagnosis only make the narrative less specific.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple, Union

from chain_client import STATUS_REVERTED, STATUS_SUCCESS, ChainClient, Receipt, TransactionRef
from error_index import shared_index
from gas_analyzer import GasPriceVerdict, analyze_gas_price
from logging_config import get_logger
from revert_decoder import Abi, DecodedError, RevertDecoder, RevertDiagnosis
from settings import TIMEOUT_OVERRIDE_VAR, ConfirmationSettings
from simulation import SimulationAnalyzer
from tx_errors import ConfirmationTimeoutError, ReceiptNotFoundError, is_timeout_error
from tx_policy import ConfirmationPolicy, resolve_policy

logger = get_logger(__name__)

PolicyResolver = Callable[[int, bool, Optional[int]], ConfirmationPolicy]
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class ConfirmationContext:
    prioritized_abis: Tuple[Abi, ...] = ()
    cancel: Optional[asyncio.Event] = None


@dataclass(frozen=True)
class Success:
    receipt: Receipt
    ok: bool = field(default=True, init=False)

    @property
    def narrative(self) -> str:
        return (
            f"Transaction {self.receipt.tx_hash} confirmed in block {self.receipt.block_number} "
            f"(gas used {self.receipt.gas_used})."
        )


@dataclass(frozen=True)
class Reverted:
    receipt: Receipt
    diagnosis: RevertDiagnosis
    ok: bool = field(default=False, init=False)

    @property
    def decoded(self) -> Optional[DecodedError]:
        return self.diagnosis.decoded

    @property
    def narrative(self) -> str:
        return self.diagnosis.narrative


@dataclass(frozen=True)
class TimedOut:
    tx_hash: str
    narrative: str
    attempts: int
    passes: int = 1
    verdict: Optional[GasPriceVerdict] = None
    ok: bool = field(default=False, init=False)


@dataclass(frozen=True)
class OtherFailure:
    receipt: Receipt
    status_label: str
    narrative: str
    ok: bool = field(default=False, init=False)


@dataclass(frozen=True)
class Cancelled:
    tx_hash: str
    narrative: str
    ok: bool = field(default=False, init=False)


ConfirmationOutcome = Union[Success, Reverted, TimedOut, OtherFailure, Cancelled]


class TransactionConfirmer:
    """Confirms transactions against one chain client."""

    def __init__(
        self,
        client: ChainClient,
        settings: Optional[ConfirmationSettings] = None,
        decoder: Optional[RevertDecoder] = None,
        *,
        policy_resolver: PolicyResolver = resolve_policy,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.settings = settings or ConfirmationSettings()
        if decoder is None:
            decoder = RevertDecoder(shared_index(self.settings.artifacts_dir))
        self.decoder = decoder
        self.simulator = SimulationAnalyzer(client)
        self._resolve_policy = policy_resolver
        self._sleep = sleep

    async def _wait(self, delay: float, cancel: Optional[asyncio.Event]) -> bool:
        """Pause for ``delay`` seconds. Returns True if cancellation was requested."""
        if cancel is None:
            await self._sleep(delay)
            return False
        if cancel.is_set():
            return True
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def _poll(
        self,
        ref: TransactionRef,
        policy: ConfirmationPolicy,
        cancel: Optional[asyncio.Event],
    ) -> Optional[Receipt]:
        """One polling pass. Returns the receipt, or None when cancelled."""
        for attempt in range(policy.max_attempts):
            if cancel is not None and cancel.is_set():
                return None
            try:
                receipt = await self.client.get_receipt(ref.tx_hash)
            except Exception as exc:
                if not is_timeout_error(exc):
                    raise
                # not mined yet, or a transient lookup timeout: keep polling
                if not isinstance(exc, ReceiptNotFoundError):
                    logger.debug("Receipt lookup for %s failed on attempt %d: %s", ref, attempt + 1, exc)
                receipt = None
            if receipt is not None:
                logger.debug("Receipt for %s found on attempt %d", ref, attempt + 1)
                return receipt
            if attempt < policy.max_attempts - 1:
                if await self._wait(policy.poll_interval_s, cancel):
                    return None

        raise ConfirmationTimeoutError(
            f"Transaction {ref} still pending after {policy.max_attempts} attempts ({policy.description})",
            ref.tx_hash,
            attempts=policy.max_attempts,
        )

    async def confirm(
        self,
        ref: Union[TransactionRef, str],
        context: Optional[ConfirmationContext] = None,
    ) -> ConfirmationOutcome:
        """Wait for ``ref`` to be mined and return its outcome."""
        if not isinstance(ref, TransactionRef):
            ref = TransactionRef(ref)
        context = context or ConfirmationContext()
        settings = self.settings

        chain_id = await self.client.get_chain_id()
        policy = self._resolve_policy(chain_id, settings.is_ci, settings.timeout_override_seconds)
        logger.debug(
            "Waiting for %s on chain %d: %d x %dms (%s)",
            ref, chain_id, policy.max_attempts, policy.poll_interval_ms, policy.description,
        )

        max_retries = settings.ci_max_retries if settings.is_ci else 0
        retries = 0
        while True:
            try:
                receipt = await self._poll(ref, policy, context.cancel)
            except Exception as exc:
                if not is_timeout_error(exc):
                    raise
                if retries < max_retries:
                    retries += 1
                    logger.warning(
                        "Timeout waiting for %s, retrying (%d/%d) in %.1fs",
                        ref, retries, max_retries, settings.ci_retry_delay_s,
                    )
                    if await self._wait(settings.ci_retry_delay_s, context.cancel):
                        return self._cancelled(ref)
                    continue
                outcome = await self._timed_out(ref, policy, retries + 1)
                logger.info("Transaction %s timed out", ref)
                return outcome

            if receipt is None:
                return self._cancelled(ref)
            return await self._settle(ref, receipt, context)

    async def confirm_many(
        self,
        refs: Iterable[Union[TransactionRef, str]],
        context: Optional[ConfirmationContext] = None,
    ) -> List[ConfirmationOutcome]:
        """Confirm independent transactions concurrently; results keep the input order."""
        return list(await asyncio.gather(*(self.confirm(ref, context) for ref in refs)))

    def _cancelled(self, ref: TransactionRef) -> Cancelled:
        logger.info("Confirmation of %s cancelled", ref)
        return Cancelled(tx_hash=ref.tx_hash, narrative=f"Confirmation of transaction {ref} was cancelled.")

    async def _settle(self, ref: TransactionRef, receipt: Receipt, context: ConfirmationContext) -> ConfirmationOutcome:
        if receipt.status == STATUS_SUCCESS:
            logger.info("Transaction %s confirmed in block %d", ref, receipt.block_number)
            return Success(receipt=receipt)

        if receipt.status == STATUS_REVERTED:
            diagnosis = await self._diagnose_revert(ref, receipt, context)
            logger.info("Transaction %s reverted: %s", ref, diagnosis.narrative)
            return Reverted(receipt=receipt, diagnosis=diagnosis)

        narrative = (
            f"Transaction {ref} finished with unexpected status '{receipt.status}' "
            f"in block {receipt.block_number} (gas used {receipt.gas_used})."
        )
        logger.info(narrative)
        return OtherFailure(receipt=receipt, status_label=receipt.status, narrative=narrative)

    async def _diagnose_revert(
        self,
        ref: TransactionRef,
        receipt: Receipt,
        context: ConfirmationContext,
    ) -> RevertDiagnosis:
        abis: Sequence[Abi] = context.prioritized_abis
        decoded: Optional[DecodedError] = None
        notes: List[str] = []

        try:
            if receipt.revert_data:
                decoded = self.decoder.decode(receipt.revert_data, abis)
            if decoded is None:
                tx = await self.client.get_transaction(ref.tx_hash)
                if tx is None:
                    notes.append("The original transaction could not be fetched for simulation.")
                else:
                    attempts = await self.simulator.simulate(tx, receipt.block_number, context.cancel)
                    report = self.simulator.diagnose(attempts, self.decoder, abis)
                    decoded = report.decoded
                    notes.extend(report.notes)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Revert diagnosis for %s failed: %s", ref, exc)
            notes.append(f"Diagnosis incomplete: {exc}")

        head = f"Transaction {ref} reverted in block {receipt.block_number}"
        if decoded is not None:
            narrative = f"{head}: {decoded.narrative}."
        else:
            narrative = f"{head}; the revert reason could not be decoded."
        if notes:
            narrative = " ".join([narrative, *notes])
        return RevertDiagnosis(decoded=decoded, narrative=narrative, notes=tuple(notes))

    async def _timed_out(
        self,
        ref: TransactionRef,
        policy: ConfirmationPolicy,
        passes: int,
    ) -> TimedOut:
        lines = [f"Transaction {ref} was not mined within {policy.description}."]
        verdict: Optional[GasPriceVerdict] = None

        try:
            tx = await self.client.get_transaction(ref.tx_hash)
            if tx is None:
                lines.append("The node does not know the transaction (dropped from the mempool or never broadcast).")
            else:
                network_price = await self.client.get_gas_price()
                verdict = analyze_gas_price(tx.effective_gas_price, network_price)
                lines.append(verdict.summary)
                if verdict.recommendation:
                    lines.append(verdict.recommendation)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Gas price analysis for %s failed: %s", ref, exc)
            lines.append(f"Gas price analysis unavailable: {exc}")

        if self.settings.is_ci:
            lines.append(
                f"Running in CI: gave up after {passes} polling passes ({passes - 1} retries)."
            )
            lines.append(
                f"Set {TIMEOUT_OVERRIDE_VAR} to allow more time, deploy in smaller batches, "
                "or check the CI runner's CPU and memory limits."
            )

        return TimedOut(
            tx_hash=ref.tx_hash,
            narrative=" ".join(lines),
            attempts=policy.max_attempts * passes,
            passes=passes,
            verdict=verdict,
        )
