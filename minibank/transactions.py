"""
Transaction Processing Module

Executes transfers and withdrawals against the account store. Every request
is validated completely before any balance moves, so a rejected request
leaves balances and histories untouched. Each success produces exactly one
immutable Transaction shared by the histories of the accounts involved.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from enum import Enum
import threading
import uuid

from .currency import Money, FixedRateConverter, TRANSACTION_PLACES
from .accounts import Account
from .storage import AccountStore
from .audit import AuditTrail, AuditEventType
from .exceptions import (
    BankingError, AccountNotFoundError, ForbiddenSourceTypeError, InsufficientFundsError
)
from .logging_config import get_logger, log_action


class TransactionType(Enum):
    """Types of ledger transactions"""
    TRANSFER = "transfer"
    WITHDRAWAL = "withdrawal"


@dataclass(frozen=True)
class Transaction:
    """
    Immutable record of a completed transfer or withdrawal.
    For a withdrawal from_account_id == to_account_id.
    """
    id: str
    from_account_id: str
    to_account_id: str
    amount: Money
    timestamp: datetime
    transaction_type: TransactionType = TransactionType.TRANSFER
    
    @property
    def is_withdrawal(self) -> bool:
        return self.transaction_type == TransactionType.WITHDRAWAL
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "transaction_type": self.transaction_type.value,
            "from_account_id": self.from_account_id,
            "to_account_id": self.to_account_id,
            "amount": str(self.amount.amount),
            "currency": self.amount.currency.code,
            "timestamp": self.timestamp.isoformat()
        }


class TransactionManager:
    """
    Transfers, withdrawals, balance queries and history queries
    """
    
    def __init__(
        self,
        store: AccountStore,
        converter: Optional[FixedRateConverter] = None,
        audit_trail: Optional[AuditTrail] = None,
        now: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.converter = converter or FixedRateConverter()
        self.audit_trail = audit_trail or AuditTrail()
        self.logger = get_logger("minibank.transactions")
        
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._last_timestamp: Optional[datetime] = None
        self._clock_lock = threading.Lock()
    
    def transfer(self, from_account_id: str, to_account_id: str, value: Money) -> Transaction:
        """
        Move money between two accounts
        
        Args:
            from_account_id: Source account (must not be a savings account)
            to_account_id: Destination account
            value: Amount to move, in any supported currency
            
        Returns:
            The created Transaction
            
        Raises:
            AccountNotFoundError: If either account does not exist
            ForbiddenSourceTypeError: If the source is a savings account
            InsufficientFundsError: If the source balance would go negative
        """
        self._validate_amount(value)
        
        with self.store.lock_accounts(from_account_id, to_account_id):
            try:
                from_account = self._get_account(from_account_id)
                to_account = self._get_account(to_account_id)
                
                if from_account.is_savings:
                    raise ForbiddenSourceTypeError(from_account_id)
                
                self._ensure_sufficient_funds(from_account, value)
            except BankingError as e:
                self._reject("transfer", e, from_account_id, to_account_id, value)
                raise
            
            transaction = self._create_transaction(
                TransactionType.TRANSFER, from_account_id, to_account_id, value
            )
            
            self._compute_transaction(from_account, value, debit=True)
            self._compute_transaction(to_account, value, debit=False)
            
            from_account.append_transaction(transaction)
            if to_account is not from_account:
                to_account.append_transaction(transaction)
            
            from_balance = from_account.balance
            to_balance = to_account.balance
        
        log_action(
            self.logger, "info", f"Transfer completed: {value.to_string()}",
            action="transfer", resource=f"transaction:{transaction.id}",
            extra={
                **transaction.to_dict(),
                "from_balance": from_balance.to_string(),
                "to_balance": to_balance.to_string()
            }
        )
        
        self.audit_trail.log_event(
            event_type=AuditEventType.TRANSFER_COMPLETED,
            entity_type="transaction",
            entity_id=transaction.id,
            metadata=transaction.to_dict()
        )
        
        return transaction
    
    def withdraw(self, account_id: str, amount: Money) -> Transaction:
        """
        Take money out of an account. Savings accounts may be withdrawn from.
        
        Raises:
            AccountNotFoundError: If the account does not exist
            InsufficientFundsError: If the balance would go negative
        """
        self._validate_amount(amount)
        
        with self.store.lock_accounts(account_id):
            try:
                account = self._get_account(account_id)
                self._ensure_sufficient_funds(account, amount)
            except BankingError as e:
                self._reject("withdraw", e, account_id, account_id, amount)
                raise
            
            transaction = self._create_transaction(
                TransactionType.WITHDRAWAL, account_id, account_id, amount
            )
            
            self._compute_transaction(account, amount, debit=True)
            account.append_transaction(transaction)
            balance = account.balance
        
        log_action(
            self.logger, "info", f"Withdrawal completed: {amount.to_string()}",
            action="withdraw", resource=f"transaction:{transaction.id}",
            extra={**transaction.to_dict(), "balance": balance.to_string()}
        )
        
        self.audit_trail.log_event(
            event_type=AuditEventType.WITHDRAWAL_COMPLETED,
            entity_type="transaction",
            entity_id=transaction.id,
            metadata=transaction.to_dict()
        )
        
        return transaction
    
    def check_funds(self, account_id: str) -> Money:
        """Current balance of an account"""
        with self.store.lock_accounts(account_id):
            return self._get_account(account_id).balance
    
    def retrieve_transactions(self, account_id: str) -> List[Transaction]:
        """Transaction history of an account, oldest first"""
        with self.store.lock_accounts(account_id):
            return list(self._get_account(account_id).transactions)
    
    def has_sufficient_funds(self, account: Account, value: Money) -> bool:
        """Check whether debiting `value` would leave the balance non-negative"""
        amount = self.converter.to_account_currency(account.currency, value)
        return not account.balance_after_debit(amount).is_negative()
    
    def _compute_transaction(self, account: Account, value: Money, debit: bool) -> None:
        """Move `value`, converted to the account currency, in or out of the account"""
        amount = self.converter.to_account_currency(account.currency, value)
        if debit:
            account.debit(amount)
        else:
            account.credit(amount)
    
    def _ensure_sufficient_funds(self, account: Account, value: Money) -> None:
        if not self.has_sufficient_funds(account, value):
            raise InsufficientFundsError(
                account.id,
                required=self.converter.to_account_currency(account.currency, value),
                available=account.balance.amount,
                currency=account.currency.code
            )
    
    def _get_account(self, account_id: str) -> Account:
        account = self.store.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account
    
    def _validate_amount(self, value: Money) -> None:
        if not isinstance(value, Money):
            raise ValueError("Transaction amount must be a Money value")
        if not value.is_positive():
            raise ValueError("Transaction amount must be positive")
        if not value.fits_transaction_precision():
            raise ValueError(
                f"Transaction amount {value.amount} has more than "
                f"{TRANSACTION_PLACES} decimal places"
            )
    
    def _create_transaction(
        self,
        transaction_type: TransactionType,
        from_account_id: str,
        to_account_id: str,
        amount: Money
    ) -> Transaction:
        return Transaction(
            id=str(uuid.uuid4()),
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
            timestamp=self._next_timestamp(),
            transaction_type=transaction_type
        )
    
    def _next_timestamp(self) -> datetime:
        """Wall-clock time, never earlier than the previous transaction's"""
        with self._clock_lock:
            timestamp = self._now()
            if self._last_timestamp is not None and timestamp < self._last_timestamp:
                timestamp = self._last_timestamp
            self._last_timestamp = timestamp
            return timestamp
    
    def _reject(
        self,
        operation: str,
        error: BankingError,
        from_account_id: str,
        to_account_id: str,
        value: Money
    ) -> None:
        details = {
            "operation": operation,
            "error_code": error.error_code,
            "from_account_id": from_account_id,
            "to_account_id": to_account_id,
            "amount": str(value.amount),
            "currency": value.currency.code
        }
        
        log_action(
            self.logger, "warning", f"{operation} rejected: {error.message}",
            action=operation, resource=f"account:{from_account_id}", extra=details
        )
        
        self.audit_trail.log_event(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            entity_type="account",
            entity_id=from_account_id,
            metadata=details
        )
