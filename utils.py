# utils.py
import asyncio
import functools
import json
import string
from typing import Any, Awaitable, Callable, List, Optional, TypeVar
from urllib.parse import urlparse

import base58
from eth_account import Account
from eth_account.signers.local import LocalAccount
from requests import Session
from solders.keypair import Keypair
from web3 import Web3, HTTPProvider
from web3.contract import Contract

import config
from logger import get_logger
from models import WalletRecord

logger = get_logger("Utils", config.LOG_LEVEL)

T = TypeVar("T")


def shorten_address(address: str) -> str:
    return f"{address[:6]}...{address[-4:]}"


def normalize_proxy(raw: Optional[str]) -> Optional[str]:
    """Turns a proxy line into a canonical URL.

    Accepted forms: host:port, host:port:user:pass, user:pass@host:port and any of
    those with a scheme. Returns None for an empty line.
    """
    if raw is None:
        return None
    proxy = raw.strip()
    if not proxy:
        return None

    if "@" not in proxy:
        scheme, sep, rest = proxy.partition("://")
        if not sep:
            scheme, rest = "http", proxy
        parts = rest.rstrip("/").split(":")
        if len(parts) == 4:
            host, port, username, password = parts
            proxy = f"{scheme}://{username}:{password}@{host}:{port}"

    if "://" not in proxy:
        proxy = "http://" + proxy

    parsed = urlparse(proxy)
    try:
        parsed.port  # raises on non-numeric / out of range port
    except ValueError as e:
        raise ValueError(f"Invalid proxy port in {raw!r}") from e
    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"Invalid proxy {raw!r}")

    return proxy.rstrip("/")


def read_lines(path: str) -> List[str]:
    """Reads a list file, dropping blank lines and # comments."""
    with open(path, encoding="utf-8") as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line and not line.startswith("#")]


def parse_private_key(raw: str, wallet_index: int) -> LocalAccount:
    key = raw.strip()
    if key[:2].lower() == "0x":
        key = key[2:]
    if len(key) != 64 or not all(c in string.hexdigits for c in key):
        raise ValueError(f"Wallet #{wallet_index}: invalid private key format, must be 64 hex chars")
    try:
        return Account.from_key("0x" + key)
    except Exception as e:
        raise ValueError(f"Wallet #{wallet_index}: invalid private key: {e}") from e


def parse_solana_key(raw: str, wallet_index: int) -> Keypair:
    try:
        secret = base58.b58decode(raw.strip())
    except ValueError as e:
        raise ValueError(f"Wallet #{wallet_index}: Solana key is not valid base58") from e

    try:
        if len(secret) == 64:
            return Keypair.from_bytes(secret)
        if len(secret) == 32:
            return Keypair.from_seed(secret)
    except Exception as e:
        raise ValueError(f"Wallet #{wallet_index}: invalid Solana key: {e}") from e
    raise ValueError(f"Wallet #{wallet_index}: invalid Solana key length ({len(secret)} bytes)")


def parse_wallet_line(line: str, proxy: Optional[str], wallet_index: int) -> WalletRecord:
    """Parses privateKey[:withdrawAddress[:solanaPrivateKey]]; extra fields are ignored."""
    parts = [part.strip() for part in line.strip().split(":")][:3]

    account = parse_private_key(parts[0], wallet_index)

    withdraw_address = None
    raw_withdraw = parts[1] if len(parts) > 1 else ""
    if raw_withdraw:
        if Web3.is_address(raw_withdraw):
            withdraw_address = Web3.to_checksum_address(raw_withdraw)
        else:
            logger.warning(
                f"Wallet #{wallet_index} ({shorten_address(account.address)}): "
                f"invalid withdraw address {raw_withdraw}, withdraw disabled"
            )

    keypair = None
    if len(parts) > 2 and parts[2]:
        keypair = parse_solana_key(parts[2], wallet_index)

    return WalletRecord(
        account=account,
        withdraw_address=withdraw_address,
        solana_keypair=keypair,
        proxy=proxy,
    )


def load_wallets(wallets_path: str = config.WALLETS_FILE, proxies_path: str = config.PROXIES_FILE) -> List[WalletRecord]:
    """Loads wallets in file order and pairs them with proxies by position.
    Any malformed line raises ValueError.
    """
    wallet_lines = read_lines(wallets_path)
    try:
        proxy_lines = read_lines(proxies_path)
    except FileNotFoundError:
        logger.warning(f"Proxy file {proxies_path} not found, running without proxies")
        proxy_lines = []

    if proxy_lines and len(proxy_lines) != len(wallet_lines):
        logger.warning(
            f"{len(wallet_lines)} wallets but {len(proxy_lines)} proxies, pairing by position"
        )

    wallets = []
    for index, line in enumerate(wallet_lines):
        wallet_index = index + 1
        proxy = None
        if index < len(proxy_lines):
            try:
                proxy = normalize_proxy(proxy_lines[index])
            except ValueError as e:
                raise ValueError(f"Proxy #{wallet_index}: {e}") from e
        wallets.append(parse_wallet_line(line, proxy, wallet_index))

    logger.info(f"Loaded {len(wallets)} wallets from {wallets_path}")
    return wallets


def load_abi(path: str) -> Any:
    """Loads contract ABI from JSON file."""
    with open(path) as f:
        return json.load(f)


def get_w3(rpc_url: str, proxy: Optional[str] = None) -> Web3:
    """Returns Web3 connection to RPC (with optional HTTP proxy session)."""
    if proxy:
        session = Session()
        session.proxies = {'http': proxy, 'https': proxy}
        provider = HTTPProvider(rpc_url, request_kwargs={'timeout': config.HTTP_TIMEOUT}, session=session)
    else:
        provider = HTTPProvider(rpc_url, request_kwargs={'timeout': config.HTTP_TIMEOUT})
    return Web3(provider)


def get_w3_with_retry(rpc_url: str, proxy: Optional[str] = None) -> Optional[Web3]:
    """Returns Web3 connection with retries and verifies chain_id matches config.CHAIN_ID."""
    for attempt in range(1, config.RPC_TRY + 1):
        try:
            w3 = get_w3(rpc_url, proxy)
            chain_id = w3.eth.chain_id
            if chain_id == config.CHAIN_ID:
                return w3
            logger.warning(f"{rpc_url}: unexpected chain_id {chain_id} (expected {config.CHAIN_ID})")
            return None
        except Exception as e:
            logger.warning(f"Attempt {attempt}/{config.RPC_TRY} failed for {rpc_url}: {e}")
    logger.error(f"All attempts failed for {rpc_url}")
    return None


def connect_w3(proxy: Optional[str] = None) -> Web3:
    """Returns the first RPC from config.RPC_LIST that answers with the expected chain."""
    for rpc in config.RPC_LIST:
        w3 = get_w3_with_retry(rpc, proxy)
        if w3 is not None:
            logger.debug(f"Using RPC {rpc}")
            return w3
    raise ConnectionError(f"No RPC available for chain {config.CHAIN_ID}")


def get_token_contract(w3: Web3) -> Contract:
    return w3.eth.contract(address=config.TOKEN_ADDRESS, abi=load_abi(config.TOKEN_ABI_PATH))


def get_claim_contract(w3: Web3) -> Contract:
    return w3.eth.contract(address=config.CLAIM_CONTRACT_ADDRESS, abi=load_abi(config.CLAIM_CONTRACT_ABI_PATH))


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Runs a blocking HTTP/RPC call in the default executor and waits for it."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    delay: float,
    label: str,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Awaits operation up to `attempts` times with a fixed delay between failures.
    The error of the final attempt is re-raised.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt < attempts:
                logger.error(f"{label} error (attempt {attempt}/{attempts}): {e}. Try again in {delay} sec")
                await sleep(delay)
                continue
            logger.error(f"{label} error (attempt {attempt}/{attempts}): {e}")
            raise
