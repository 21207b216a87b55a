# models.py
from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_account.signers.local import LocalAccount
from solders.keypair import Keypair

import config


@dataclass(frozen=True)
class WalletRecord:
    account: LocalAccount
    withdraw_address: Optional[str] = None
    solana_keypair: Optional[Keypair] = None
    proxy: Optional[str] = None

    @property
    def address(self) -> str:
        return self.account.address


@dataclass(frozen=True)
class Allocation:
    """Server-attested allocation: amount is a decimal string in whole tokens."""
    address: str
    amount: str
    deadline: int
    sign: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Allocation":
        try:
            return cls(
                address=str(data["address"]),
                amount=str(data["amount"]),
                deadline=int(data["deadline"]),
                sign=str(data["sign"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed allocation payload: {data!r}") from e


@dataclass(frozen=True)
class RunSettings:
    """Run-wide settings; defaults come from config.py."""
    delay_min: float = config.DELAY_MIN_SEC
    delay_max: float = config.DELAY_MAX_SEC
    instant_claim: bool = config.INSTANT_CLAIM
    invitor_address: str = config.INVITOR_ADDRESS
    tx_attempts: int = config.TX_ATTEMPTS
    retry_delay: float = config.RETRY_DELAY_SEC
    tx_timeout: int = config.TX_TIMEOUT
    confirmations: int = config.CONFIRMATIONS
    token_symbol: str = config.TOKEN_SYMBOL
    gas_price_multiplier: float = config.GAS_PRICE_MULTIPLIER
    rpc_via_proxy: bool = config.RPC_VIA_PROXY

    def __post_init__(self) -> None:
        if self.delay_min < 0 or self.delay_min > self.delay_max:
            raise ValueError(f"Invalid delay range: {self.delay_min}..{self.delay_max}")
        if self.tx_attempts < 1:
            raise ValueError("tx_attempts must be at least 1")

    @classmethod
    def from_config(cls, module: Any = config, **overrides: Any) -> "RunSettings":
        values = dict(
            delay_min=module.DELAY_MIN_SEC,
            delay_max=module.DELAY_MAX_SEC,
            instant_claim=module.INSTANT_CLAIM,
            invitor_address=module.INVITOR_ADDRESS,
            tx_attempts=module.TX_ATTEMPTS,
            retry_delay=module.RETRY_DELAY_SEC,
            tx_timeout=module.TX_TIMEOUT,
            confirmations=module.CONFIRMATIONS,
            token_symbol=module.TOKEN_SYMBOL,
            gas_price_multiplier=module.GAS_PRICE_MULTIPLIER,
            rpc_via_proxy=module.RPC_VIA_PROXY,
        )
        values.update(overrides)
        return cls(**values)
