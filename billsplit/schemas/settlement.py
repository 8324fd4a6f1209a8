# billsplit/schemas/settlement.py

from typing import List, Optional

from pydantic import BaseModel


class MemberBalanceOut(BaseModel):
    """
    Net position of one member: balance > 0 means the member is owed money,
    balance < 0 means the member owes money.
    """
    user_id: int
    name: Optional[str] = None
    total_paid: float
    fair_share: float
    balance: float


class SettlementOut(BaseModel):
    """
    One step of the greedy settle-up plan: debtor pays creditor.
    """
    from_user_id: int  # debtor
    to_user_id: int    # creditor
    from_name: Optional[str] = None
    to_name: Optional[str] = None
    amount: float      # > 0, rounded to MONEY_DECIMALS


class SettlePlanOut(BaseModel):
    group_id: int
    balances: List[MemberBalanceOut]
    transfers: List[SettlementOut]
