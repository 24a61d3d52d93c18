# reelsync/application/outcome/result_parser.py
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional, List

from reelsync.domain.machine.entities.symbol import Symbol
from reelsync.domain.session.entities.outcome import Outcome, OutcomeSource
from .ledger_client import MalformedReceiptError


SPIN_RESULT_EVENT = "SpinResult"
WEI_PER_ETHER = Decimal(10) ** 18


def find_spin_result(receipt: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Return the args of the first SpinResult log in a receipt, or None."""
    for log in receipt.get("logs") or []:
        if isinstance(log, dict) and log.get("event") == SPIN_RESULT_EVENT:
            return log.get("args") or {}
    return None


def parse_combination(raw) -> List[Symbol]:
    """
    The contract reports the combination either as a list of names or as
    one string joined with ',', '|' or whitespace.
    """
    if isinstance(raw, str):
        for separator in (",", "|"):
            raw = raw.replace(separator, " ")
        names = raw.split()
    elif isinstance(raw, (list, tuple)):
        names = list(raw)
    else:
        raise MalformedReceiptError(f"Unsupported combination value: {raw!r}")

    if len(names) != 3:
        raise MalformedReceiptError(f"Expected 3 symbols, got {len(names)}: {raw!r}")
    try:
        return [Symbol.parse(name) for name in names]
    except ValueError as e:
        raise MalformedReceiptError(str(e)) from e


def wei_to_ether(value) -> Decimal:
    try:
        wei = Decimal(int(value))
    except (TypeError, ValueError, InvalidOperation):
        raise MalformedReceiptError(f"Reward is not an integer wei amount: {value!r}") from None
    if wei < 0:
        raise MalformedReceiptError(f"Negative reward: {value!r}")
    return wei / WEI_PER_ETHER


def parse_spin_receipt(receipt: Dict[str, Any]) -> Outcome:
    """
    Turn a confirmed spin transaction receipt into a remote Outcome.

    Raises:
        MalformedReceiptError: If the SpinResult record is missing or unreadable
    """
    if not isinstance(receipt, dict):
        raise MalformedReceiptError(f"Receipt must be a mapping, got {type(receipt).__name__}")

    reference = receipt.get("hash")
    if not reference:
        raise MalformedReceiptError("Receipt has no transaction hash")

    args = find_spin_result(receipt)
    if args is None:
        raise MalformedReceiptError(f"No {SPIN_RESULT_EVENT} record in transaction {reference}")

    if "combination" not in args or "monReward" not in args:
        raise MalformedReceiptError(f"Incomplete {SPIN_RESULT_EVENT} record in transaction {reference}")

    try:
        bonus_spins = int(args.get("extraSpins", 0))
    except (TypeError, ValueError):
        raise MalformedReceiptError(f"extraSpins is not an integer: {args.get('extraSpins')!r}") from None
    if bonus_spins < 0:
        raise MalformedReceiptError(f"Negative extraSpins: {bonus_spins}")

    return Outcome(
        combination=tuple(parse_combination(args["combination"])),
        monetary_reward=wei_to_ether(args["monReward"]),
        bonus_spins=bonus_spins,
        rare_award_granted=bool(args.get("nftMinted", False)),
        source=OutcomeSource.REMOTE,
        reference=str(reference),
        discount_granted=bool(args.get("newDiscountGranted", False)),
        discount_applied=bool(args.get("discountApplied", False)),
    )
