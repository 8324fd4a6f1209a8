# billsplit/utils/balance.py
# -----------------------------------------------------------------------------
# BALANCE / SETTLE-UP UTILITIES
# -----------------------------------------------------------------------------
# Policy:
#   • Equal split: every member's fair share is total group spend / members.
#   • Internal arithmetic is Decimal; no rounding here (see round_money for
#     presentation).
#   • Net semantics:
#       balance > 0: member is owed money (creditor);
#       balance < 0: member owes money (debtor).
#   • Zero checks are epsilon-based, so the greedy loop always terminates.
#   • A recorded payment sender -> receiver of X raises sender's balance by X
#     and lowers receiver's balance by X.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date as date_type
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

log = logging.getLogger(__name__)

MemberId = Union[int, str]

EPSILON = Decimal("1e-9")
ZERO = Decimal("0")


class InvalidContributionError(ValueError):
    pass


class SettlementError(RuntimeError):
    pass


# =========================
# HELPERS
# =========================

def _D(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    if isinstance(x, bool):
        raise InvalidContributionError(f"Amount must be numeric, got {x!r}")
    try:
        return Decimal(str(x))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidContributionError(f"Amount must be numeric, got {x!r}")


def _clamp(d: Decimal) -> Decimal:
    return ZERO if abs(d) <= EPSILON else d


def _sort_key(member: MemberId) -> str:
    return str(member)


def round_money(value, decimals: int = 2) -> Decimal:
    q = Decimal("1") if decimals <= 0 else Decimal("1").scaleb(-decimals)
    return _D(value).quantize(q, rounding=ROUND_HALF_UP)


# =========================
# RECORDS
# =========================

@dataclass(frozen=True)
class Contribution:
    """One payment by a member within a group."""

    member: MemberId
    amount: Decimal
    category: Optional[str] = None
    date: Optional[date_type] = None

    def __post_init__(self):
        if self.member is None or (isinstance(self.member, str) and not self.member.strip()):
            raise InvalidContributionError("Contribution member is required")
        amount = _D(self.amount)
        if not amount.is_finite():
            raise InvalidContributionError(f"Amount must be finite, got {self.amount!r}")
        if amount < 0:
            raise InvalidContributionError(f"Amount must be non-negative, got {amount}")
        object.__setattr__(self, "amount", amount)

    @classmethod
    def from_mapping(cls, data: Mapping) -> "Contribution":
        if "member" not in data or "amount" not in data:
            raise InvalidContributionError("Contribution requires 'member' and 'amount'")
        return cls(
            member=data["member"],
            amount=data["amount"],
            category=data.get("category"),
            date=data.get("date"),
        )


@dataclass(frozen=True)
class MemberBalance:
    member: MemberId
    total_paid: Decimal
    fair_share: Decimal
    balance: Decimal

    @property
    def is_creditor(self) -> bool:
        return self.balance > EPSILON

    @property
    def is_debtor(self) -> bool:
        return self.balance < -EPSILON

    @property
    def is_settled(self) -> bool:
        return not (self.is_creditor or self.is_debtor)


@dataclass(frozen=True)
class SettlementTransfer:
    from_member: MemberId
    to_member: MemberId
    amount: Decimal

    def as_dict(self) -> Dict:
        return {"from": self.from_member, "to": self.to_member, "amount": self.amount}


@dataclass(frozen=True)
class Payment:
    """A settled payment between two members, already made outside the plan."""

    sender: MemberId
    receiver: MemberId
    amount: Decimal

    def __post_init__(self):
        amount = _D(self.amount)
        if not amount.is_finite() or amount < 0:
            raise InvalidContributionError(f"Payment amount must be non-negative, got {self.amount!r}")
        if self.sender == self.receiver:
            raise InvalidContributionError("Payment sender and receiver must differ")
        object.__setattr__(self, "amount", amount)


@dataclass(frozen=True)
class SettlePlan:
    balances: List[MemberBalance] = field(default_factory=list)
    transfers: List[SettlementTransfer] = field(default_factory=list)


# =========================
# NET BALANCES
# =========================

def _as_contribution(item) -> Contribution:
    if isinstance(item, Contribution):
        return item
    if isinstance(item, Mapping):
        return Contribution.from_mapping(item)
    raise InvalidContributionError(f"Unsupported contribution record: {item!r}")


def compute_balances(
    contributions: Iterable,
    members: Optional[Iterable[MemberId]] = None,
) -> List[MemberBalance]:
    """
    Groups contributions by member and returns each member's deviation from
    the equal fair share.

    Without ``members`` only payers are known to the group, so someone who
    paid nothing is invisible. Passing the group roster as ``members`` makes
    such members owe their full fair share.
    """
    totals: Dict[MemberId, Decimal] = {}
    for m in members or ():
        totals.setdefault(m, ZERO)
    for item in contributions:
        c = _as_contribution(item)
        totals[c.member] = totals.get(c.member, ZERO) + c.amount

    if not totals:
        return []

    total = sum(totals.values(), ZERO)
    fair_share = total / Decimal(len(totals))

    return [
        MemberBalance(
            member=m,
            total_paid=paid,
            fair_share=fair_share,
            balance=_clamp(paid - fair_share),
        )
        for m, paid in totals.items()
    ]


def apply_payments(
    balances: Iterable[MemberBalance],
    payments: Iterable[Payment],
) -> List[MemberBalance]:
    out: Dict[MemberId, MemberBalance] = {b.member: b for b in balances}
    shift: Dict[MemberId, Decimal] = {}
    for p in payments:
        shift[p.sender] = shift.get(p.sender, ZERO) + p.amount
        shift[p.receiver] = shift.get(p.receiver, ZERO) - p.amount

    for m, delta in shift.items():
        b = out.get(m) or MemberBalance(member=m, total_paid=ZERO, fair_share=ZERO, balance=ZERO)
        out[m] = MemberBalance(
            member=m,
            total_paid=b.total_paid,
            fair_share=b.fair_share,
            balance=_clamp(b.balance + delta),
        )
    return list(out.values())


# =========================
# GREEDY SETTLE-UP
# =========================

def _as_pairs(balances) -> List[Tuple[MemberId, Decimal]]:
    if isinstance(balances, Mapping):
        return [(m, _D(v)) for m, v in balances.items()]
    return [(b.member, _D(b.balance)) for b in balances]


def compute_settlements(balances) -> List[SettlementTransfer]:
    """
    Greedy settle-up: repeatedly match the largest creditor with the largest
    debtor and transfer the smaller of the two amounts.

    Not an optimal minimum-transaction solver, but every step zeroes at least
    one side, so there are at most ``members - 1`` transfers.
    """
    pairs = _as_pairs(balances)

    # [member, remaining] lists are local copies; caller data is never touched
    creditors = sorted(
        ([m, bal] for m, bal in pairs if bal > EPSILON),
        key=lambda x: (-x[1], _sort_key(x[0])),
    )
    debtors = sorted(
        ([m, bal] for m, bal in pairs if bal < -EPSILON),
        key=lambda x: (x[1], _sort_key(x[0])),
    )

    transfers: List[SettlementTransfer] = []
    i, j = 0, 0
    while i < len(creditors) and j < len(debtors):
        creditor = creditors[i]
        debtor = debtors[j]

        amount = min(creditor[1], -debtor[1])
        if amount <= ZERO:
            raise SettlementError(
                f"Non-positive settle amount {amount} between {debtor[0]!r} and {creditor[0]!r}"
            )

        transfers.append(SettlementTransfer(from_member=debtor[0], to_member=creditor[0], amount=amount))

        creditor[1] = _clamp(creditor[1] - amount)
        debtor[1] = _clamp(debtor[1] + amount)

        if creditor[1] == ZERO:
            i += 1
        if debtor[1] == ZERO:
            j += 1

    log.debug(
        "settle-up: %d creditors, %d debtors -> %d transfers",
        len(creditors), len(debtors), len(transfers),
    )
    return transfers


def build_settle_plan(
    contributions: Iterable,
    members: Optional[Iterable[MemberId]] = None,
    payments: Iterable[Payment] = (),
) -> SettlePlan:
    balances = compute_balances(contributions, members)
    payments = list(payments)
    if payments:
        balances = apply_payments(balances, payments)
    transfers = compute_settlements(balances)
    return SettlePlan(balances=balances, transfers=transfers)
