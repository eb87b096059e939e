"""Account resources: `GET v1/accounts` and `GET v1/accounts/{id}/activities`."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Union

from pydantic import Field

from questrade.core.domain.models import ApiModel


class AccountType(str, Enum):
    CASH = "Cash"
    FRESP = "FRESP"
    MARGIN = "Margin"
    LIF = "LIF"
    LIRA = "LIRA"
    LRIF = "LRIF"
    LRRSP = "LRRSP"
    PRIF = "PRIF"
    RIF = "RIF"
    SRIF = "SRIF"
    RESP = "RESP"
    RRIF = "RRIF"
    RRSP = "RRSP"
    SRRSP = "SRRSP"
    TFSA = "TFSA"


class AccountStatus(str, Enum):
    ACTIVE = "Active"
    SUSPENDED_CLOSED = "Suspended (Closed)"
    SUSPENDED_VIEW_ONLY = "Suspended (View Only)"
    LIQUIDATE_ONLY = "Liquidate Only"
    CLOSED = "Closed"


class ClientAccountType(str, Enum):
    CORPORATION = "Corporation"
    FAMILY = "Family"
    FORMAL_TRUST = "Formal Trust"
    INDIVIDUAL = "Individual"
    INFORMAL_TRUST = "Informal Trust"
    INSTITUTION = "Institution"
    INVESTMENT_CLUB = "Investment Club"
    JOINT = "Joint"
    JOINT_AND_INFORMAL_TRUST = "Joint and Informal Trust"
    PARTNERSHIP = "Partnership"
    SOLE_PROPRIETORSHIP = "Sole Proprietorship"


class Currency(str, Enum):
    CAD = "CAD"
    USD = "USD"


class ActivityType(str, Enum):
    """Known activity categories.

    Questrade adds categories over time; `Activity.activity_type` falls back
    to the raw string for values not listed here.
    """

    INTEREST = "Interest"
    DEPOSITS = "Deposits"
    TRADES = "Trades"
    DIVIDENDS = "Dividends"
    FX_CONVERSION = "FX conversion"


class Account(ApiModel):
    account_type: AccountType = Field(..., alias="type")
    number: str = Field(..., min_length=1)
    status: AccountStatus
    is_primary: bool
    is_billing: bool
    client_account_type: ClientAccountType


class Accounts(ApiModel):
    accounts: list[Account]
    user_id: int | None = None


class Activity(ApiModel):
    trade_date: datetime
    transaction_date: datetime
    settlement_date: datetime
    action: str
    symbol: str
    symbol_id: int
    description: str
    currency: Currency
    quantity: float
    price: float
    gross_amount: float
    commission: float
    net_amount: float
    activity_type: Union[ActivityType, str] = Field(..., alias="type", union_mode="left_to_right")


class Activities(ApiModel):
    activities: list[Activity]
