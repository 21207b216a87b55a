# claim_withdraw.py
import asyncio
import random
import time
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

from eth_account.signers.local import LocalAccount
from web3 import Web3

import config
from api import bind_solana, fetch_allocation, make_session
from logger import get_logger
from models import Allocation, RunSettings, WalletRecord
from utils import (
    connect_w3,
    get_claim_contract,
    get_token_contract,
    load_wallets,
    retry_async,
    run_blocking,
    shorten_address,
)

logger = get_logger("ClaimWithdraw", config.LOG_LEVEL)

Sleep = Callable[[float], Awaitable[Any]]


class TransactionError(Exception):
    """Transaction was mined but reverted."""


def _wait_confirmations(w3: Web3, block_number: int, confirmations: int, timeout: int) -> None:
    deadline = time.monotonic() + timeout
    while w3.eth.block_number - block_number + 1 < confirmations:
        if time.monotonic() > deadline:
            raise TimeoutError(f"Not {confirmations} confirmations within {timeout} sec")
        time.sleep(1)


def send_transaction(w3: Web3, account: LocalAccount, contract_call: Any, settings: RunSettings) -> str:
    """Builds, signs and sends a contract call, then waits for the receipt.
    Returns the tx hash; raises on revert, timeout or RPC errors.
    """
    # pending: a timed-out tx may still sit in the mempool
    nonce = w3.eth.get_transaction_count(account.address, "pending")
    gas_price = int(w3.eth.gas_price * settings.gas_price_multiplier)

    # gas is estimated by build_transaction
    txn = contract_call.build_transaction({
        "from": account.address,
        "nonce": nonce,
        "gasPrice": gas_price,
        "chainId": w3.eth.chain_id,
    })
    txn["gas"] = int(txn["gas"] * 1.2)

    signed_txn = account.sign_transaction(txn)
    tx_hash = w3.eth.send_raw_transaction(signed_txn.raw_transaction)
    tx_hex = Web3.to_hex(tx_hash)
    logger.info(f"Transaction sent ({shorten_address(account.address)}), tx: {tx_hex}")

    start = time.monotonic()
    receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=settings.tx_timeout)
    if receipt.status != 1:
        raise TransactionError(f"Transaction reverted, tx: {tx_hex}")
    if settings.confirmations > 1:
        remaining = max(1, int(settings.tx_timeout - (time.monotonic() - start)))
        _wait_confirmations(w3, receipt.blockNumber, settings.confirmations, remaining)
    return tx_hex


async def claim_allocation(
    w3: Web3,
    wallet: WalletRecord,
    allocation: Allocation,
    settings: RunSettings,
    sleep: Sleep = asyncio.sleep,
) -> Optional[str]:
    """Claims the allocation unless the contract already records a claim for this wallet."""
    contract = get_claim_contract(w3)

    claimed_amount = await run_blocking(contract.functions.claimUser(wallet.address).call)
    if claimed_amount > 0:
        logger.info(f"[{wallet.address}] Already claimed!")
        return None

    claim_call = contract.functions.claim(
        Web3.to_checksum_address(allocation.address),
        Web3.to_wei(allocation.amount, "ether"),
        allocation.deadline,
        Web3.to_bytes(hexstr=allocation.sign),
        settings.instant_claim,
        Web3.to_checksum_address(settings.invitor_address),
    )

    async def attempt() -> str:
        return await run_blocking(send_transaction, w3, wallet.account, claim_call, settings)

    tx_hash = await retry_async(
        attempt, settings.tx_attempts, settings.retry_delay, f"[{wallet.address}] Claim", sleep
    )
    logger.info(
        f"[{wallet.address}] Allocation of {allocation.amount} {settings.token_symbol} claimed successfully! tx: {tx_hash}"
    )
    return tx_hash


async def withdraw_balance(
    w3: Web3,
    wallet: WalletRecord,
    settings: RunSettings,
    sleep: Sleep = asyncio.sleep,
) -> Optional[str]:
    """Transfers the whole token balance to wallet.withdraw_address."""
    if not wallet.withdraw_address:
        raise ValueError(f"[{wallet.address}] No withdraw address configured")

    contract = get_token_contract(w3)
    balance = await run_blocking(contract.functions.balanceOf(wallet.address).call)
    if balance <= 0:
        logger.info(f"[{wallet.address}] Nothing to withdraw!")
        return None

    logger.info(f"[{wallet.address}] Withdraw to {wallet.withdraw_address}")
    transfer_call = contract.functions.transfer(wallet.withdraw_address, balance)

    async def attempt() -> str:
        return await run_blocking(send_transaction, w3, wallet.account, transfer_call, settings)

    tx_hash = await retry_async(
        attempt, settings.tx_attempts, settings.retry_delay, f"[{wallet.address}] Withdraw", sleep
    )
    logger.info(
        f"[{wallet.address}] Withdrawn {Web3.from_wei(balance, 'ether')} {settings.token_symbol} "
        f"to {wallet.withdraw_address} successfully! tx: {tx_hash}"
    )
    return tx_hash


class ClaimRunner:
    """Processes wallets one by one: allocation, optional Solana bind, claim, optional withdraw.

    A failing wallet is logged and skipped. Wallets are separated by a random delay
    from settings.delay_min..delay_max.
    """

    def __init__(self, settings: RunSettings, w3: Optional[Web3] = None, sleep: Sleep = asyncio.sleep):
        self.settings = settings
        self.w3 = w3
        self.sleep = sleep

    async def _get_w3(self, wallet: WalletRecord) -> Web3:
        if self.settings.rpc_via_proxy and wallet.proxy:
            return await run_blocking(connect_w3, wallet.proxy)
        if self.w3 is None:
            self.w3 = await run_blocking(connect_w3)
        return self.w3

    async def connect(self) -> None:
        """Opens the shared RPC connection; raises ConnectionError when no RPC answers."""
        if self.w3 is None and not self.settings.rpc_via_proxy:
            self.w3 = await run_blocking(connect_w3)

    async def process_wallet(self, wallet: WalletRecord) -> None:
        session = make_session(wallet.proxy)
        try:
            allocation = await run_blocking(fetch_allocation, wallet.account, wallet.proxy, session)
            logger.info(f"[{wallet.address}] Allocation of {allocation.amount} {self.settings.token_symbol} loaded!")

            if wallet.solana_keypair is not None:
                await run_blocking(bind_solana, wallet.account, wallet.solana_keypair, wallet.proxy, session)
                logger.info(f"[{wallet.address}] Solana address {wallet.solana_keypair.pubkey()} successfully bound")
        finally:
            session.close()

        w3 = await self._get_w3(wallet)
        await claim_allocation(w3, wallet, allocation, self.settings, self.sleep)

        if wallet.withdraw_address:
            await withdraw_balance(w3, wallet, self.settings, self.sleep)

    async def run(self, wallets: Sequence[WalletRecord]) -> Tuple[int, int]:
        await self.connect()

        succeeded, failed = 0, 0
        for index, wallet in enumerate(wallets, start=1):
            logger.info(f"Wallet #{index}/{len(wallets)} ({shorten_address(wallet.address)}): processing")
            try:
                await self.process_wallet(wallet)
                succeeded += 1
            except Exception as e:
                failed += 1
                logger.error(str(e))
                logger.error(f"[{wallet.address}] Wallet processing error")

            if index < len(wallets):
                delay = random.uniform(self.settings.delay_min, self.settings.delay_max)
                logger.info(f"Next wallet in {delay:.1f} sec")
                await self.sleep(delay)

        logger.info(f"All wallets processed! Succeeded: {succeeded}, failed: {failed}")
        return succeeded, failed


async def run_claim_workers() -> Tuple[int, int]:
    wallets = load_wallets(config.WALLETS_FILE, config.PROXIES_FILE)
    settings = RunSettings.from_config(config)
    return await ClaimRunner(settings).run(wallets)
