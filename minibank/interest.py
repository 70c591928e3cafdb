"""
Interest Capitalization Module

Advances a simulated calendar one month at a time and capitalizes interest
on every savings account whose schedule matures in the new month. Maturity
is decided by calendar month and year only; the day of month never matters.
"""

from datetime import date
from dataclasses import dataclass, field
from typing import List, Optional
import calendar
import threading

from .currency import Money
from .accounts import SavingsAccount
from .storage import AccountStore
from .audit import AuditTrail, AuditEventType
from .logging_config import get_logger, log_action


def add_months(start: date, months: int) -> date:
    """
    Add calendar months to a date, clamping the day to the end of the
    target month (Jan 31 + 1 month = Feb 28/29)
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


class SimulationClock:
    """
    The ledger's notion of "today", moved only by explicit calls
    """
    
    def __init__(self, start: Optional[date] = None):
        self._current = start or date.today()
        self._lock = threading.Lock()
    
    @property
    def current_date(self) -> date:
        with self._lock:
            return self._current
    
    def peek_next(self) -> date:
        """The date one month ahead, without moving the clock"""
        with self._lock:
            return add_months(self._current, 1)
    
    def advance(self) -> date:
        """Move the clock forward one month and return the new date"""
        with self._lock:
            self._current = add_months(self._current, 1)
            return self._current
    
    def reset(self, to: date) -> None:
        with self._lock:
            self._current = to


@dataclass(frozen=True)
class InterestPosting:
    """Interest credited to one account during one period"""
    account_id: str
    interest: Money
    new_balance: Money
    applied_date: date


@dataclass
class CapitalizationRun:
    """Outcome of one clock step"""
    period_date: date
    postings: List[InterestPosting] = field(default_factory=list)
    
    @property
    def capitalized_account_ids(self) -> List[str]:
        return [p.account_id for p in self.postings]


class SavingsManager:
    """
    Capitalizes interest on savings accounts as simulated time passes
    """
    
    def __init__(
        self,
        store: AccountStore,
        clock: Optional[SimulationClock] = None,
        audit_trail: Optional[AuditTrail] = None
    ):
        self.store = store
        self.clock = clock or SimulationClock()
        self.audit_trail = audit_trail or AuditTrail()
        self.logger = get_logger("minibank.interest")
        # Serializes whole steps so two callers cannot both apply the same period
        self._step_lock = threading.Lock()
    
    def pass_time(self) -> CapitalizationRun:
        """
        Advance the simulated clock by one month, capitalizing every
        savings account that matures in the new month
        
        Returns:
            CapitalizationRun listing the postings made this period
        """
        with self._step_lock:
            next_date = self.clock.peek_next()
            run = CapitalizationRun(period_date=next_date)
            
            savings_accounts = [
                account for account in self.store.get_all()
                if isinstance(account, SavingsAccount)
            ]
            
            for account in savings_accounts:
                with self.store.lock_accounts(account.id):
                    if not self.is_due(account, next_date):
                        continue
                    
                    interest = account.capitalize()
                    account.last_interest_applied_date = next_date
                    posting = InterestPosting(
                        account_id=account.id,
                        interest=interest,
                        new_balance=account.balance,
                        applied_date=next_date
                    )
                
                run.postings.append(posting)
                self._record_posting(account, posting)
            
            self.clock.advance()
        
        log_action(
            self.logger, "info", f"Simulated clock advanced to {next_date.isoformat()}",
            action="pass_time", resource="clock",
            extra={
                "period_date": next_date.isoformat(),
                "capitalized_accounts": len(run.postings)
            }
        )
        
        self.audit_trail.log_event(
            event_type=AuditEventType.CLOCK_ADVANCED,
            entity_type="clock",
            entity_id="simulation",
            metadata={
                "period_date": next_date,
                "capitalized_accounts": run.capitalized_account_ids
            }
        )
        
        return run
    
    def run_periods(self, periods: int) -> List[CapitalizationRun]:
        """Call pass_time `periods` times"""
        if periods < 0:
            raise ValueError("Number of periods cannot be negative")
        return [self.pass_time() for _ in range(periods)]
    
    def is_due(self, account: SavingsAccount, on_date: date) -> bool:
        """Check if the account's next capitalization falls in on_date's month"""
        due_date = add_months(
            account.last_interest_applied_date,
            account.capitalization_frequency.months
        )
        return (due_date.year, due_date.month) == (on_date.year, on_date.month)
    
    def _record_posting(self, account: SavingsAccount, posting: InterestPosting) -> None:
        log_action(
            self.logger, "info", f"Interest capitalized: {posting.interest.to_string()}",
            action="capitalize_interest", resource=f"account:{account.id}",
            extra={
                "interest": posting.interest.to_string(),
                "new_balance": posting.new_balance.to_string(),
                "interest_rate": str(account.interest_rate),
                "frequency": account.capitalization_frequency.label,
                "applied_date": posting.applied_date.isoformat()
            }
        )
        
        self.audit_trail.log_event(
            event_type=AuditEventType.INTEREST_CAPITALIZED,
            entity_type="account",
            entity_id=account.id,
            metadata={
                "interest": str(posting.interest.amount),
                "new_balance": str(posting.new_balance.amount),
                "currency": posting.interest.currency.code,
                "applied_date": posting.applied_date
            }
        )
