"""
End-to-end tests through the Bank facade

Exercises transfers, withdrawals and interest capitalization together and
checks the ledger-wide invariants.
"""

import pytest
import threading
from decimal import Decimal
from datetime import date

from minibank.bank import Bank
from minibank.config import MinibankConfig
from minibank.currency import Money, Currency
from minibank.accounts import CapitalizationFrequency, SavingsAccount
from minibank.audit import AuditEventType
from minibank.exceptions import ForbiddenSourceTypeError, InsufficientFundsError


class TestBankIntegration:
    """Test the assembled ledger"""
    
    def setup_method(self):
        self.bank = Bank(MinibankConfig(simulation_start_date=date(2024, 1, 15)))
        
        self.bank.open_checking_account("CHK_RON", Decimal('1000.00'), Currency.RON)
        self.bank.open_checking_account("CHK_EUR", Decimal('200.00'), Currency.EUR)
        self.bank.open_savings_account(
            "SAV_RON", Decimal('1000.00'), Currency.RON, Decimal('0.02'),
            CapitalizationFrequency.MONTHLY
        )
        self.bank.open_savings_account(
            "SAV_EUR", Decimal('500.00'), Currency.EUR, '0.03',
            CapitalizationFrequency.QUARTERLY
        )
    
    def total_in_ron(self) -> Decimal:
        return sum(
            self.bank.converter.convert(account.balance, Currency.RON).amount
            for account in self.bank.store.get_all()
        )
    
    def test_savings_schedule_starts_at_simulated_date(self):
        account = self.bank.store.get("SAV_RON")
        
        assert isinstance(account, SavingsAccount)
        assert account.last_interest_applied_date == date(2024, 1, 15)
    
    def test_full_scenario(self):
        self.bank.transfer("CHK_RON", "SAV_RON", Money(Decimal('500'), Currency.RON))
        self.bank.transfer("CHK_EUR", "SAV_EUR", Money(Decimal('250'), Currency.RON))
        self.bank.withdraw("SAV_RON", Money(Decimal('10'), Currency.EUR))
        
        assert self.bank.check_funds("SAV_RON") == Money(Decimal('1450.00'), Currency.RON)
        assert self.bank.check_funds("SAV_EUR") == Money(Decimal('550.00'), Currency.EUR)
        
        with pytest.raises(ForbiddenSourceTypeError):
            self.bank.transfer("SAV_RON", "CHK_RON", Money(Decimal('1'), Currency.RON))
        
        runs = [self.bank.pass_time() for _ in range(3)]
        
        assert [r.capitalized_account_ids for r in runs] == [
            ["SAV_RON"], ["SAV_RON"], ["SAV_RON", "SAV_EUR"]
        ]
        # 1450 * 1.02^3
        assert self.bank.check_funds("SAV_RON") == Money(Decimal('1538.7516'), Currency.RON)
        assert self.bank.check_funds("SAV_EUR") == Money(Decimal('566.50'), Currency.EUR)
        
        history = self.bank.retrieve_transactions("SAV_RON")
        assert [t.from_account_id for t in history] == ["CHK_RON", "SAV_RON"]
        assert self.bank.audit_trail.verify_integrity()['valid']
    
    def test_value_accounting(self):
        before = self.total_in_ron()
        
        self.bank.transfer("CHK_RON", "CHK_EUR", Money(Decimal('123.45'), Currency.RON))
        self.bank.transfer("CHK_EUR", "SAV_RON", Money(Decimal('3.21'), Currency.EUR))
        assert self.total_in_ron() == before
        
        self.bank.withdraw("CHK_EUR", Money(Decimal('10'), Currency.EUR))
        assert self.total_in_ron() == before - Decimal('50')
        
        run = self.bank.pass_time()
        interest = sum(
            self.bank.converter.convert(p.interest, Currency.RON).amount for p in run.postings
        )
        assert interest > 0
        assert self.total_in_ron() == before - Decimal('50') + interest
    
    def test_no_balance_goes_negative(self):
        requests = [
            ("transfer", "CHK_RON", "CHK_EUR", Money(Decimal('600'), Currency.RON)),
            ("transfer", "CHK_RON", "CHK_EUR", Money(Decimal('600'), Currency.RON)),
            ("withdraw", "SAV_EUR", None, Money(Decimal('2600'), Currency.RON)),
            ("withdraw", "SAV_EUR", None, Money(Decimal('500'), Currency.EUR)),
            ("transfer", "CHK_EUR", "CHK_RON", Money(Decimal('400'), Currency.EUR)),
        ]
        rejected = 0
        
        for kind, source, target, value in requests:
            try:
                if kind == "transfer":
                    self.bank.transfer(source, target, value)
                else:
                    self.bank.withdraw(source, value)
            except InsufficientFundsError:
                rejected += 1
            
            for account in self.bank.store.get_all():
                assert not account.balance.is_negative()
        
        assert rejected == 3
        assert self.bank.check_funds("SAV_EUR").is_zero()
    
    def test_interest_steps_interleaved_with_transfers(self):
        savings = self.bank.store.get("SAV_RON")
        errors = []
        
        def transfers():
            try:
                for _ in range(50):
                    self.bank.transfer("CHK_RON", "SAV_RON", Money(Decimal('1'), Currency.RON))
            except Exception as exc:  # pragma: no cover
                errors.append(exc)
        
        def steps():
            try:
                for _ in range(12):
                    self.bank.pass_time()
            except Exception as exc:  # pragma: no cover
                errors.append(exc)
        
        threads = [threading.Thread(target=transfers), threading.Thread(target=steps)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        
        assert errors == []
        assert self.bank.check_funds("CHK_RON") == Money(Decimal('950.00'), Currency.RON)
        assert len(savings.transactions) == 50
        assert self.bank.clock.current_date == date(2025, 1, 15)
        assert len(self.bank.audit_trail.get_events_by_type(AuditEventType.CLOCK_ADVANCED)) == 12
    
    def test_audit_can_be_disabled(self):
        bank = Bank(MinibankConfig(enable_audit_logging=False))
        bank.open_checking_account("A", '10', Currency.RON)
        bank.withdraw("A", Money(Decimal('1'), Currency.RON))
        
        assert bank.audit_trail.count_events() == 0
    
    def test_custom_conversion_rate(self):
        bank = Bank(MinibankConfig(eur_to_ron_rate="4"))
        bank.open_checking_account("A", '100', Currency.RON)
        bank.open_checking_account("B", '0', Currency.EUR)
        
        bank.transfer("A", "B", Money(Decimal('100'), Currency.RON))
        
        assert bank.check_funds("B") == Money(Decimal('25'), Currency.EUR)
    
    def test_opening_balances_accept_formatted_text(self):
        account = self.bank.open_checking_account("CHK_TXT", "RON 1,234.56", Currency.RON)
        savings = self.bank.open_savings_account("SAV_TXT", "1.000,50", Currency.EUR, "0.01")
        
        assert account.balance == Money(Decimal('1234.56'), Currency.RON)
        assert savings.balance == Money(Decimal('1000.50'), Currency.EUR)
        
        with pytest.raises(ValueError, match="Cannot parse"):
            self.bank.open_checking_account("CHK_BAD", "lots", Currency.RON)
        assert not self.bank.store.exists("CHK_BAD")
