"""
Request value objects for deposit and withdraw operations

Amounts are parsed into Decimal from their decimal-string form and are
never routed through float.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from ..errors import ValidationError
from .network import Network
from .tokens import STABLECOIN_MIN_WITHDRAWAL, is_stablecoin


def parse_amount(value: Union[str, int, Decimal]) -> Decimal:
    """
    Parse a user amount into a positive finite Decimal

    Raises:
        ValidationError: Amount is non-numeric, non-finite, zero or negative
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError.invalid_amount(value)
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError.invalid_amount(value)
    if not amount.is_finite() or amount <= 0:
        raise ValidationError.invalid_amount(value)
    return amount


def format_amount(amount: Decimal) -> str:
    """Render a Decimal without exponent or trailing zeros"""
    text = format(amount, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


@dataclass(frozen=True)
class DepositRequest:
    network: Network
    token: str
    amount: Decimal
    private_key: Optional[str] = None

    @classmethod
    def create(cls, network, token: str, amount, private_key: Optional[str] = None) -> "DepositRequest":
        """Build and validate a request; fails before any I/O"""
        request = cls(
            network=Network.from_string(network),
            token=(token or "").strip(),
            amount=parse_amount(amount),
            private_key=private_key,
        )
        request.validate()
        return request

    def validate(self) -> None:
        if not self.token:
            raise ValidationError("Token is required", field_name="token")
        if not self.amount.is_finite() or self.amount <= 0:
            raise ValidationError.invalid_amount(self.amount)


@dataclass(frozen=True)
class WithdrawRequest:
    network: Network
    token: str
    amount: Decimal
    destination: Optional[str] = None
    private_key: Optional[str] = None

    @classmethod
    def create(
        cls,
        network,
        token: str,
        amount,
        destination: Optional[str] = None,
        private_key: Optional[str] = None,
    ) -> "WithdrawRequest":
        """Build and validate a request; fails before any I/O"""
        request = cls(
            network=Network.from_string(network),
            token=(token or "").strip().upper(),
            amount=parse_amount(amount),
            destination=destination or None,
            private_key=private_key,
        )
        request.validate()
        return request

    def validate(self) -> None:
        if not self.token:
            raise ValidationError("Token is required", field_name="token")
        if not self.amount.is_finite() or self.amount <= 0:
            raise ValidationError.invalid_amount(self.amount)
        if is_stablecoin(self.token) and self.amount < STABLECOIN_MIN_WITHDRAWAL:
            raise ValidationError.below_minimum(self.token, self.amount, STABLECOIN_MIN_WITHDRAWAL)

    @property
    def amount_str(self) -> str:
        return format_amount(self.amount)
