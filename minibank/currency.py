"""
Currency Module

Two-currency (RON/EUR) money model with a fixed conversion rule and
Decimal arithmetic. NEVER uses float for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from dataclasses import dataclass
from enum import Enum
import re

# Set global decimal context for financial precision
getcontext().prec = 28

# Internal scale of every Money amount. Display uses the currency precision.
AMOUNT_PLACES = 6
AMOUNT_QUANTUM = Decimal('0.1') ** AMOUNT_PLACES

# Transaction values carry one place less, so that dividing by the
# conversion rate always stays representable at AMOUNT_PLACES.
TRANSACTION_PLACES = AMOUNT_PLACES - 1
TRANSACTION_QUANTUM = Decimal('0.1') ** TRANSACTION_PLACES

# With 28 significant digits and AMOUNT_PLACES decimals
MAX_AMOUNT_DIGITS = getcontext().prec - AMOUNT_PLACES

# 1 EUR = 5 RON
EUR_TO_RON_RATE = Decimal('5')


class Currency(Enum):
    """Supported currency codes with display precision"""
    RON = ("RON", 2)  # Romanian Leu
    EUR = ("EUR", 2)  # Euro
    
    def __init__(self, code: str, precision: int):
        self.code = code
        self.precision = precision


@dataclass(frozen=True)
class Money:
    """
    Immutable money representation with currency.
    Amounts are kept at AMOUNT_PLACES decimal places, rounded half up.
    """
    amount: Decimal
    currency: Currency
    
    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, 'amount', Decimal(str(self.amount)))
            except InvalidOperation:
                raise ValueError(f"Cannot convert {self.amount!r} to a Money amount")
        
        if not isinstance(self.currency, Currency):
            raise ValueError(f"Money currency must be a Currency, got {self.currency!r}")
        
        if not self.amount.is_finite():
            raise ValueError(f"Money amount must be finite, got {self.amount}")
        
        try:
            rounded = self.amount.quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)
        except InvalidOperation:
            raise ValueError(
                f"Money amount {self.amount} exceeds {MAX_AMOUNT_DIGITS} integer digits"
            )
        object.__setattr__(self, 'amount', rounded)
    
    def __add__(self, other: 'Money') -> 'Money':
        if self.currency != other.currency:
            raise ValueError(f"Cannot add {self.currency.code} and {other.currency.code}")
        return Money(self.amount + other.amount, self.currency)
    
    def __sub__(self, other: 'Money') -> 'Money':
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract {other.currency.code} from {self.currency.code}")
        return Money(self.amount - other.amount, self.currency)
    
    def __mul__(self, multiplier: Decimal) -> 'Money':
        if not isinstance(multiplier, Decimal):
            multiplier = Decimal(str(multiplier))
        return Money(self.amount * multiplier, self.currency)
    
    def __neg__(self) -> 'Money':
        return Money(-self.amount, self.currency)
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return False
        return self.amount == other.amount and self.currency == other.currency
    
    def __hash__(self) -> int:
        return hash((self.amount, self.currency))
    
    def __lt__(self, other: 'Money') -> bool:
        if self.currency != other.currency:
            raise ValueError(f"Cannot compare {self.currency.code} and {other.currency.code}")
        return self.amount < other.amount
    
    def __le__(self, other: 'Money') -> bool:
        if self.currency != other.currency:
            raise ValueError(f"Cannot compare {self.currency.code} and {other.currency.code}")
        return self.amount <= other.amount
    
    def __gt__(self, other: 'Money') -> bool:
        if self.currency != other.currency:
            raise ValueError(f"Cannot compare {self.currency.code} and {other.currency.code}")
        return self.amount > other.amount
    
    def __ge__(self, other: 'Money') -> bool:
        if self.currency != other.currency:
            raise ValueError(f"Cannot compare {self.currency.code} and {other.currency.code}")
        return self.amount >= other.amount
    
    def is_zero(self) -> bool:
        """Check if amount is exactly zero"""
        return self.amount == Decimal('0')
    
    def is_positive(self) -> bool:
        """Check if amount is positive"""
        return self.amount > Decimal('0')
    
    def is_negative(self) -> bool:
        """Check if amount is negative"""
        return self.amount < Decimal('0')
    
    def to_string(self) -> str:
        """Format for display"""
        shown = round_for_display(self.amount, self.currency)
        return f"{self.currency.code} {shown:,.{self.currency.precision}f}"
    
    def fits_transaction_precision(self) -> bool:
        """Check if the amount has at most TRANSACTION_PLACES decimals"""
        return self.amount == self.amount.quantize(TRANSACTION_QUANTUM, rounding=ROUND_HALF_UP)


class FixedRateConverter:
    """
    Converts between RON and EUR at a fixed rate.
    
    The same conversion backs both the balance sufficiency check and the
    balance mutation, so the two can never disagree.
    """
    
    def __init__(self, eur_to_ron: Decimal = EUR_TO_RON_RATE):
        if not isinstance(eur_to_ron, Decimal):
            eur_to_ron = Decimal(str(eur_to_ron))
        if eur_to_ron <= Decimal('0'):
            raise ValueError("Conversion rate must be positive")
        self.eur_to_ron_rate = eur_to_ron
    
    def ron_to_eur(self, amount: Decimal) -> Decimal:
        return amount / self.eur_to_ron_rate
    
    def eur_to_ron(self, amount: Decimal) -> Decimal:
        return amount * self.eur_to_ron_rate
    
    def convert(self, money: Money, to_currency: Currency) -> Money:
        """
        Convert money into another currency
        
        Args:
            money: Money to convert
            to_currency: Target currency
            
        Returns:
            Converted Money object (the same object if currencies match)
        """
        if money.currency == to_currency:
            return money
        
        if to_currency == Currency.EUR:
            return Money(self.ron_to_eur(money.amount), Currency.EUR)
        return Money(self.eur_to_ron(money.amount), Currency.RON)
    
    def to_account_currency(self, account_currency: Currency, value: Money) -> Decimal:
        """Amount of `value` expressed in the account's own currency"""
        return self.convert(value, account_currency).amount


def parse_amount(value: str) -> Decimal:
    """
    Parse a user-entered amount such as "1,234.56", "1.234,56", "12,5"
    or "RON 100". Currency codes and spaces are ignored.
    
    Raises:
        ValueError: If the text is not a finite number
    """
    if not value or not isinstance(value, str):
        raise ValueError("Amount must be a non-empty string")
    
    text = re.sub(r'[^\d.,\-+]', '', value)
    last_comma, last_dot = text.rfind(','), text.rfind('.')
    
    if last_comma > last_dot:
        # Comma is the decimal separator unless it groups thousands ("1,000")
        grouped = text.count(',') > 1 or (len(text) - last_comma - 1 == 3 and last_dot < 0)
        if grouped:
            text = text.replace(',', '')
        else:
            text = text.replace('.', '').replace(',', '.')
    else:
        text = text.replace(',', '')
    
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Cannot parse amount '{value}'")
    
    if not amount.is_finite():
        raise ValueError(f"Cannot parse amount '{value}'")
    return amount


def round_for_display(value: Decimal, currency: Currency) -> Decimal:
    """Round an amount to the currency's display precision, half up"""
    return value.quantize(Decimal('0.1') ** currency.precision, rounding=ROUND_HALF_UP)
