"""
Ledger running-balance computation.

Sign convention: a debit raises what the counterparty owes the issuer, a
credit lowers it. A non-negative balance is shown as "Dr", a negative one as
"Cr" with its absolute value.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Sequence, Tuple

from bizdocs.schemas import LedgerTransaction, TransactionType
from bizdocs.services.errors import LedgerImbalanceError
from bizdocs.services.formatting import plain_amount, to_decimal


@dataclass(frozen=True)
class RunningLedger:
    opening_balance: Decimal
    per_transaction: Tuple[Decimal, ...]
    total_debits: Decimal
    total_credits: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class LedgerGrandTotals:
    """
    Both sides of the account after the closing balance is carried down.

    `closing_on_credit_side` is True for a debit ("Dr") closing balance, which
    is written on the credit side so the two columns agree.
    """
    debit_side: Decimal
    credit_side: Decimal
    closing_amount: Decimal
    closing_on_credit_side: bool
    debit_before_closing: Decimal
    credit_before_closing: Decimal


def order_transactions(transactions: Iterable[LedgerTransaction]) -> List[LedgerTransaction]:
    """
    Date order with `created_at` as the same-day tie-break.

    Entries without `created_at` keep their supplied relative order (the sort
    is stable).
    """
    def key(t: LedgerTransaction):
        created = t.created_at
        if created is not None and created.tzinfo is not None:
            created = created.astimezone(timezone.utc).replace(tzinfo=None)
        return (t.transaction_date, created is None, created or datetime.min)

    return sorted(transactions, key=key)


def signed_amount(t: LedgerTransaction) -> Decimal:
    if t.transaction_type == TransactionType.DEBIT:
        return t.amount
    return -t.amount


def compute_running(opening_balance, transactions: Sequence[LedgerTransaction]) -> RunningLedger:
    """
    Fold `transactions` (already in date order) into per-row balances.

    The input list is not re-sorted or modified. After every step the balance
    is checked against opening + debits - credits.
    """
    opening = to_decimal(opening_balance)
    balance = opening
    total_debits = Decimal("0")
    total_credits = Decimal("0")
    running: List[Decimal] = []

    for t in transactions:
        balance += signed_amount(t)
        if t.transaction_type == TransactionType.DEBIT:
            total_debits += t.amount
        else:
            total_credits += t.amount
        if balance != opening + total_debits - total_credits:
            raise LedgerImbalanceError(f"Running balance diverged at row {len(running) + 1}")
        running.append(balance)

    if balance != opening + total_debits - total_credits:
        raise LedgerImbalanceError("Closing balance does not reconcile with totals")

    return RunningLedger(
        opening_balance=opening,
        per_transaction=tuple(running),
        total_debits=total_debits,
        total_credits=total_credits,
        closing_balance=balance,
    )


def grand_totals(ledger: RunningLedger) -> LedgerGrandTotals:
    """Carry the closing balance to the opposite side and check both sides agree."""
    opening = ledger.opening_balance
    debit_side = ledger.total_debits + (opening if opening > 0 else Decimal("0"))
    credit_side = ledger.total_credits + (-opening if opening < 0 else Decimal("0"))

    before = (debit_side, credit_side)
    closing = ledger.closing_balance
    if debit_side - credit_side != closing:
        raise LedgerImbalanceError("Ledger sides do not reconcile with the closing balance")

    on_credit_side = closing >= 0
    if on_credit_side:
        credit_side += closing
    else:
        debit_side += -closing

    if debit_side != credit_side:
        raise LedgerImbalanceError("Grand total sides differ")

    return LedgerGrandTotals(
        debit_side=debit_side,
        credit_side=credit_side,
        closing_amount=abs(closing),
        closing_on_credit_side=on_credit_side,
        debit_before_closing=before[0],
        credit_before_closing=before[1],
    )


def balance_suffix(balance) -> str:
    return "Dr" if to_decimal(balance) >= 0 else "Cr"


def balance_label(balance) -> str:
    """`balance_label(Decimal("-25"))` -> "25.00 Cr"."""
    d = to_decimal(balance)
    return f"{plain_amount(abs(d))} {balance_suffix(d)}"
