# config.py
# Configuration
import os

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# List of RPC endpoints (first reachable one with matching chain_id is used)
RPC_LIST = [
    "https://bsc-rpc.publicnode.com",
    "https://bsc-dataseed.bnbchain.org",
    "https://bsc.drpc.org",
]

# Chain ID for BNB Smart Chain (used for validation)
CHAIN_ID = 56

# Number of connection attempts per RPC entry
RPC_TRY = 3

# Route RPC traffic through the wallet proxy as well (backend calls always use it)
RPC_VIA_PROXY = False

# Backend
API_BASE_URL = "https://api.jager.meme"
HTTP_TIMEOUT = 30  # seconds per request

# Address of the $JAGER token contract
TOKEN_ADDRESS = "0x74836cC0E821A6bE18e407E6388E430B689C66e9"
TOKEN_SYMBOL = "JAGER"  # 18 decimals, converted with Web3.to_wei(amount, "ether")

# Address of the airdrop claim contract
CLAIM_CONTRACT_ADDRESS = "0xDF6dbd6d4069bF0c9450538238A9643C72E4a6E4"

# Paths to ABI files
CLAIM_CONTRACT_ABI_PATH = os.path.join(BASE_DIR, "abis", "claim_abi.json")
TOKEN_ABI_PATH = os.path.join(BASE_DIR, "abis", "token_abi.json")

# Input files: one wallet per line, privateKey[:withdrawAddress[:solanaPrivateKey]]
WALLETS_FILE = os.path.join(BASE_DIR, "data", "wallets.txt")
# One proxy per line, paired with wallets by position
PROXIES_FILE = os.path.join(BASE_DIR, "data", "proxies.txt")

# Delay between wallets in seconds (random in range)
DELAY_MIN_SEC = 3
DELAY_MAX_SEC = 10

# True - claim instantly, False - claim after the 72h lock period
INSTANT_CLAIM = True

# Invitor passed to claim()
INVITOR_ADDRESS = "0xa5b61AF6BC5a24991cf54e835Bdd2C0c4f41D816"

TX_ATTEMPTS = 5  # Total attempts for claim/withdraw transactions
RETRY_DELAY_SEC = 3  # Delay between transaction attempts in seconds

# Transaction receipt timeout in seconds
TX_TIMEOUT = 60
CONFIRMATIONS = 1

# Gas price multiplier for safety
GAS_PRICE_MULTIPLIER = 1.1

# Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
LOG_LEVEL = "INFO"

# Log file path
LOG_FILE = "claim_log.txt"
