#!/usr/bin/env python3
"""
Check whether the signer can fund a run.

Shows the SUI balance and coin count of the signer address, and the
amount a run of LIMIT links needs.
"""

import asyncio
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from linkdrop.chain.rpc import SuiRpcClient
from linkdrop.config import LinkdropConfig, NetworkType
from linkdrop.tx.signer import TransactionSigner

MIST_PER_SUI = 1_000_000_000


async def check_balance(config: LinkdropConfig) -> dict:
    """Check balance at the signer address."""
    signer = TransactionSigner(config)
    signer.load_from_config()

    print(f"\n📬 Signer Address: {signer.address}")

    client = SuiRpcClient(config)
    await client.connect()

    try:
        balance = await client.get_balance(signer.address)
        coins = await client.get_all_coins(signer.address)
    finally:
        await client.disconnect()

    required = config.limit * config.coin_value + config.funding_gas_budget

    print(f"\n💰 Balance:")
    print(f"   Coins: {len(coins)}")
    print(f"   Total: {balance / MIST_PER_SUI:.9f} SUI ({balance:,} MIST)")
    print(f"   Needed for {config.limit} links: {required / MIST_PER_SUI:.9f} SUI")

    if balance >= required:
        print(f"\n✅ Sufficient balance for the configured run")
    else:
        print(f"\n❌ Insufficient balance. Fund the address: {signer.address}")

    return {
        "address": signer.address,
        "coin_count": len(coins),
        "balance": balance,
        "required": required,
    }


def main():
    parser = argparse.ArgumentParser(description="Check signer balance")
    parser.add_argument(
        "--network", "-n",
        choices=[n.value for n in NetworkType],
        help="Sui network (default: NETWORK or mainnet)"
    )

    args = parser.parse_args()
    overrides = {"network": args.network} if args.network else {}
    asyncio.run(check_balance(LinkdropConfig(**overrides)))


if __name__ == "__main__":
    main()
