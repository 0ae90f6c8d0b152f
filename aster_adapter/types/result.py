"""
Result type definitions for chain operations, exchange orders and workflows
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from .network import Network


class TxStatus(Enum):
    """Chain transaction status"""
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class SignedOperationResult:
    """
    Outcome of a signed chain write

    Attributes:
        network: Network the transaction was sent on
        action: Operation name (e.g., "deposit")
        tx_hash: Transaction hash (EVM) or signature (Solana)
        status: Transaction status
        block: Block number (EVM) or slot (Solana)
        explorer_url: Explorer link for the transaction
        token: Token symbol
        amount: UI amount moved
        approval_tx_hash: ERC20 approval sent before the deposit, if any
        extra: Additional context (gas used, deposit account, ...)
    """
    network: Network
    action: str
    tx_hash: str
    status: TxStatus
    block: Optional[int] = None
    explorer_url: Optional[str] = None
    token: Optional[str] = None
    amount: Optional[Decimal] = None
    approval_tx_hash: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_confirmed(self) -> bool:
        return self.status == TxStatus.CONFIRMED

    @classmethod
    def confirmed(cls, network: Network, action: str, tx_hash: str, **kwargs) -> "SignedOperationResult":
        return cls(
            network=network,
            action=action,
            tx_hash=tx_hash,
            status=TxStatus.CONFIRMED,
            explorer_url=network.explorer_link(tx_hash),
            **kwargs
        )

    @classmethod
    def submitted(cls, network: Network, action: str, tx_hash: str, **kwargs) -> "SignedOperationResult":
        return cls(
            network=network,
            action=action,
            tx_hash=tx_hash,
            status=TxStatus.SUBMITTED,
            explorer_url=network.explorer_link(tx_hash),
            **kwargs
        )

    def __str__(self) -> str:
        return f"{self.action}({self.network.value}, {self.status.value}, {self.tx_hash[:16]}...)"


@dataclass(frozen=True)
class FeeQuote:
    """Withdrawal fee estimate for a token on an EVM chain"""
    token: str
    chain_id: int
    fee: str
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WithdrawalResult:
    """
    Exchange withdrawal submission

    Attributes:
        withdraw_id: Exchange withdrawal ID
        network: Destination network
        token: Asset withdrawn
        amount: Amount requested
        fee: Fee quoted and signed
        from_address: Signing wallet (exchange account)
        to_address: Destination address
        nonce: Signed nonce (microseconds)
        tx_hash: On-chain hash if the exchange reported one
        raw: Raw API response
    """
    withdraw_id: Optional[str]
    network: Network
    token: str
    amount: str
    fee: str
    from_address: str
    to_address: str
    nonce: int
    status: str = "submitted"
    tx_hash: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def chain_id(self) -> Optional[int]:
        return self.network.chain_id


@dataclass(frozen=True)
class OrderResult:
    """Exchange order response"""
    order_id: Optional[int]
    symbol: str
    side: str
    order_type: str
    status: str
    executed_qty: str
    cummulative_quote_qty: str = "0"
    avg_price: Optional[str] = None
    update_time: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "OrderResult":
        cum_quote = data.get("cumQuote")
        if cum_quote is None:
            cum_quote = data.get("cummulativeQuoteQty", "0")
        return cls(
            order_id=data.get("orderId"),
            symbol=data.get("symbol", ""),
            side=data.get("side", ""),
            order_type=data.get("type", ""),
            status=data.get("status", ""),
            executed_qty=str(data.get("executedQty", "0")),
            cummulative_quote_qty=str(cum_quote),
            avg_price=data.get("avgPrice"),
            update_time=data.get("updateTime"),
            raw=data,
        )


@dataclass(frozen=True)
class AssetBalance:
    asset: str
    free: Decimal
    locked: Decimal

    @property
    def total(self) -> Decimal:
        return self.free + self.locked


@dataclass(frozen=True)
class AccountSnapshot:
    """Exchange spot account permissions and non-zero balances"""
    can_trade: bool
    can_deposit: bool
    can_withdraw: bool
    balances: List[AssetBalance] = field(default_factory=list)
    update_time: Optional[int] = None

    def balance(self, asset: str) -> Optional[AssetBalance]:
        for item in self.balances:
            if item.asset.upper() == asset.upper():
                return item
        return None


@dataclass(frozen=True)
class TokenBalance:
    """On-chain balance of a wallet"""
    network: Network
    address: str
    token: str
    balance: Decimal
    decimals: int
    raw_balance: int
    token_address: Optional[str] = None


@dataclass(frozen=True)
class GeneratedWallet:
    """Freshly created wallet; the mnemonic and key must be stored by the caller"""
    network: Network
    address: str
    private_key: str
    mnemonic: str


@dataclass(frozen=True)
class WorkflowStep:
    index: int
    action: str
    result: Any


@dataclass
class WorkflowTrace:
    """
    Ordered record of a saga run

    Steps are appended as they commit and are never removed. On failure
    failed_at names the step that failed and error wraps its cause.
    """
    steps: List[WorkflowStep] = field(default_factory=list)
    failed_at: Optional[str] = None
    error: Optional[Exception] = None
    summary: Dict[str, Any] = field(default_factory=dict)

    def record(self, action: str, result: Any) -> WorkflowStep:
        step = WorkflowStep(index=len(self.steps) + 1, action=action, result=result)
        self.steps.append(step)
        return step

    def fail(self, action: str, error: Exception) -> None:
        self.failed_at = action
        self.error = error

    @property
    def success(self) -> bool:
        return self.failed_at is None

    @property
    def completed_actions(self) -> List[str]:
        return [step.action for step in self.steps]

    def result_of(self, action: str) -> Any:
        for step in self.steps:
            if step.action == action:
                return step.result
        return None
