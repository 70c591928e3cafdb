"""
Ledger facade

Wires the account store, converter, audit trail, clock and both engines
together from configuration.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from .config import MinibankConfig, get_config
from .currency import Money, Currency, FixedRateConverter, parse_amount
from .accounts import CheckingAccount, SavingsAccount, CapitalizationFrequency
from .storage import InMemoryAccountStore
from .audit import AuditTrail
from .logging_config import setup_logging
from .transactions import TransactionManager, Transaction
from .interest import SavingsManager, SimulationClock, CapitalizationRun


def _opening_balance(amount: Union[Decimal, str, int], currency: Currency) -> Money:
    if isinstance(amount, str):
        amount = parse_amount(amount)
    return Money(amount, currency)


class Bank:
    """In-memory ledger with all components initialized"""
    
    def __init__(self, config: Optional[MinibankConfig] = None, configure_logging: bool = False):
        self.config = config or get_config()
        
        if configure_logging:
            setup_logging(self.config.log_level, log_format=self.config.log_format)
        
        self.store = InMemoryAccountStore()
        self.audit_trail = AuditTrail(enabled=self.config.enable_audit_logging)
        self.converter = FixedRateConverter(parse_amount(self.config.eur_to_ron_rate))
        self.clock = SimulationClock(self.config.simulation_start_date)
        
        self.transaction_manager = TransactionManager(
            self.store, self.converter, self.audit_trail
        )
        self.savings_manager = SavingsManager(
            self.store, self.clock, self.audit_trail
        )
    
    def open_checking_account(
        self,
        account_id: str,
        amount: Union[Decimal, str, int],
        currency: Currency
    ) -> CheckingAccount:
        """Register a checking account with an opening balance"""
        return self.store.add(CheckingAccount(id=account_id, balance=_opening_balance(amount, currency)))
    
    def open_savings_account(
        self,
        account_id: str,
        amount: Union[Decimal, str, int],
        currency: Currency,
        interest_rate: Union[Decimal, str],
        capitalization_frequency: CapitalizationFrequency = CapitalizationFrequency.MONTHLY,
        last_interest_applied_date: Optional[date] = None
    ) -> SavingsAccount:
        """
        Register a savings account. The schedule starts from the current
        simulated date unless a last application date is given.
        """
        account = SavingsAccount(
            id=account_id,
            balance=_opening_balance(amount, currency),
            interest_rate=Decimal(str(interest_rate)),
            capitalization_frequency=capitalization_frequency,
            last_interest_applied_date=last_interest_applied_date or self.clock.current_date
        )
        return self.store.add(account)
    
    def transfer(self, from_account_id: str, to_account_id: str, value: Money) -> Transaction:
        return self.transaction_manager.transfer(from_account_id, to_account_id, value)
    
    def withdraw(self, account_id: str, amount: Money) -> Transaction:
        return self.transaction_manager.withdraw(account_id, amount)
    
    def check_funds(self, account_id: str) -> Money:
        return self.transaction_manager.check_funds(account_id)
    
    def retrieve_transactions(self, account_id: str) -> List[Transaction]:
        return self.transaction_manager.retrieve_transactions(account_id)
    
    def pass_time(self) -> CapitalizationRun:
        return self.savings_manager.pass_time()
