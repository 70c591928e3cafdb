"""
Ledger error taxonomy

All errors are validation failures raised before any balance is touched.
They subclass ValueError so callers that only catch ValueError keep working.
"""

from decimal import Decimal
from typing import Optional


class BankingError(ValueError):
    """Base class for ledger business-rule violations"""
    
    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class AccountNotFoundError(BankingError):
    """Referenced account id does not exist in the store"""
    
    def __init__(self, account_id: str):
        super().__init__(
            f"Account {account_id} does not exist",
            error_code="ACCOUNT_NOT_FOUND"
        )
        self.account_id = account_id


class ForbiddenSourceTypeError(BankingError):
    """Attempted transfer out of a savings account"""
    
    def __init__(self, account_id: str):
        super().__init__(
            f"Account {account_id}: savings accounts cannot be a transfer source",
            error_code="FORBIDDEN_SOURCE_TYPE"
        )
        self.account_id = account_id


class InsufficientFundsError(BankingError):
    """Debit would drive the balance below zero"""
    
    def __init__(self, account_id: str, required: Decimal, available: Decimal, currency: str):
        super().__init__(
            f"Account {account_id} has insufficient funds: "
            f"{currency} {required} required, {currency} {available} available",
            error_code="INSUFFICIENT_FUNDS"
        )
        self.account_id = account_id
        self.required = required
        self.available = available
        self.currency = currency
