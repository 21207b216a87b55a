# main.py
import asyncio
from logger import get_logger
import config
from claim_withdraw import run_claim_workers

logger = get_logger("Main", config.LOG_LEVEL)


async def main() -> None:
    """Processes every wallet from config.WALLETS_FILE once and returns."""
    try:
        await run_claim_workers()
    except (ValueError, OSError) as e:
        # bad wallet/proxy files or no reachable RPC
        logger.error(f"Run aborted: {e}")


if __name__ == "__main__":
    asyncio.run(main())
