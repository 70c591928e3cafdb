"""
Account Module

Account variants held by the account store. Checking and savings accounts
are distinct classes; only SavingsAccount carries the capitalization
schedule, so interest logic cannot be applied to a checking account.
"""

from decimal import Decimal
from datetime import date, datetime
from dataclasses import dataclass, field
from typing import ClassVar, List, TYPE_CHECKING
from enum import Enum

from .currency import Money, Currency

if TYPE_CHECKING:
    from .transactions import Transaction


class AccountType(Enum):
    """Account variants"""
    CHECKING = "checking"
    SAVINGS = "savings"


class CapitalizationFrequency(Enum):
    """How often interest is capitalized, with the period length in months"""
    MONTHLY = ("monthly", 1)
    QUARTERLY = ("quarterly", 3)
    
    def __init__(self, label: str, months: int):
        self.label = label
        self.months = months


@dataclass
class Account:
    """
    Base account: identity, balance and an append-only transaction history.
    
    The history is in insertion order, which is chronological order.
    """
    ACCOUNT_TYPE: ClassVar[AccountType]
    
    id: str
    balance: Money
    transactions: List['Transaction'] = field(default_factory=list, init=False, repr=False)
    
    def __post_init__(self):
        if not self.id:
            raise ValueError("Account id must be a non-empty string")
    
    def __setattr__(self, name, value):
        if name == 'id' and 'id' in self.__dict__:
            raise AttributeError("Account id is immutable")
        super().__setattr__(name, value)
    
    @property
    def account_type(self) -> AccountType:
        return self.ACCOUNT_TYPE
    
    @property
    def currency(self) -> Currency:
        return self.balance.currency
    
    @property
    def is_savings(self) -> bool:
        return self.account_type == AccountType.SAVINGS
    
    def balance_after_debit(self, amount: Decimal) -> Money:
        """Balance that a debit of `amount` (account currency) would leave"""
        return self.balance - Money(amount, self.currency)
    
    def debit(self, amount: Decimal) -> None:
        self.balance = self.balance_after_debit(amount)
    
    def credit(self, amount: Decimal) -> None:
        self.balance = self.balance + Money(amount, self.currency)
    
    def append_transaction(self, transaction: 'Transaction') -> None:
        self.transactions.append(transaction)


@dataclass
class CheckingAccount(Account):
    """Current account; may send and receive transfers"""
    ACCOUNT_TYPE: ClassVar[AccountType] = AccountType.CHECKING


@dataclass
class SavingsAccount(Account):
    """
    Savings account with periodic interest capitalization.
    
    May receive transfers and be withdrawn from, but never be a transfer source.
    """
    ACCOUNT_TYPE: ClassVar[AccountType] = AccountType.SAVINGS
    
    interest_rate: Decimal                  # Per-period rate (e.g., 0.02 for 2%)
    capitalization_frequency: CapitalizationFrequency
    last_interest_applied_date: date
    
    def __post_init__(self):
        super().__post_init__()
        
        if not isinstance(self.interest_rate, Decimal):
            self.interest_rate = Decimal(str(self.interest_rate))
        
        if self.interest_rate < Decimal('0') or self.interest_rate > Decimal('1'):
            raise ValueError("Interest rate must be between 0 and 1 (0-100%)")
        
        if isinstance(self.last_interest_applied_date, datetime):
            self.last_interest_applied_date = self.last_interest_applied_date.date()
    
    def capitalize(self) -> Money:
        """
        Credit one period of interest into the principal
        
        Returns:
            The interest credited, in the account currency
        """
        interest = self.balance * self.interest_rate
        self.balance = self.balance + interest
        return interest
