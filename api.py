# api.py
import base64
from typing import Any, Dict, Optional

import requests
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from requests import Session
from solders.keypair import Keypair
from web3 import Web3

import config
from logger import get_logger
from models import Allocation

logger = get_logger("Api", config.LOG_LEVEL)

CLAIM_AIRDROP_PATH = "/api/airdrop/claimAirdrop"
BIND_SOLANA_PATH = "/api/airdrop/bindSolana"

DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "Origin": "https://jager.meme",
    "Referer": "https://jager.meme/",
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
}


class BackendError(Exception):
    """Backend answered with a non-success envelope or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, server_message: Optional[str] = None):
        self.status_code = status_code
        self.server_message = server_message
        super().__init__(f"{message} (status: {status_code}): {server_message}")


def sign_evm_message(account: LocalAccount, message: str) -> str:
    """EIP-191 personal_sign signature as 0x-prefixed hex."""
    signed = account.sign_message(encode_defunct(text=message))
    return Web3.to_hex(signed.signature)


def sign_solana_message(keypair: Keypair, message: str) -> str:
    """Detached ed25519 signature over the UTF-8 message, base64 encoded."""
    signature = keypair.sign_message(message.encode("utf-8"))
    return base64.b64encode(bytes(signature)).decode("ascii")


def make_session(proxy: Optional[str] = None) -> Session:
    session = Session()
    session.headers.update(DEFAULT_HEADERS)
    if proxy:
        session.proxies = {'http': proxy, 'https': proxy}
    return session


def _post(path: str, payload: Dict[str, Any], proxy: Optional[str], session: Optional[Session], error_message: str) -> Any:
    own_session = session is None
    if own_session:
        session = make_session(proxy)
    url = config.API_BASE_URL.rstrip("/") + path
    try:
        response = session.post(url, json=payload, timeout=config.HTTP_TIMEOUT)
    except requests.RequestException as e:
        raise BackendError(error_message, None, str(e)) from e
    finally:
        if own_session:
            session.close()

    try:
        body = response.json()
    except ValueError:
        body = None

    if response.ok and isinstance(body, dict) and body.get("code") == 200 and body.get("data"):
        return body["data"]

    server_message = body.get("message") if isinstance(body, dict) else response.text[:200]
    raise BackendError(error_message, response.status_code, server_message)


def fetch_allocation(account: LocalAccount, proxy: Optional[str] = None, session: Optional[Session] = None) -> Allocation:
    payload = {
        "address": account.address,
        "signStr": sign_evm_message(account, account.address),
        "solAddress": "",
        "solSignStr": "",
    }
    data = _post(CLAIM_AIRDROP_PATH, payload, proxy, session, "No allocation or malformed response")
    try:
        return Allocation.from_payload(data)
    except ValueError as e:
        raise BackendError("No allocation or malformed response", 200, str(e)) from e


def bind_solana(
    account: LocalAccount,
    keypair: Keypair,
    proxy: Optional[str] = None,
    session: Optional[Session] = None,
) -> Any:
    solana_address = str(keypair.pubkey())
    payload = {
        "address": account.address,
        "signStr": sign_evm_message(account, account.address),
        "solAddress": solana_address,
        "solSignStr": sign_solana_message(keypair, account.address),
    }
    data = _post(BIND_SOLANA_PATH, payload, proxy, session, "Failed to bind Solana address")
    logger.debug(f"bindSolana response for {account.address}: {data}")
    return data
