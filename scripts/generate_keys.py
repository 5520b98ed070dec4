#!/usr/bin/env python3
"""
Generate an Ed25519 signing key for the link generator.

Prints the hex secret key (for SECRET_KEY) and the derived Sui address,
and optionally appends SECRET_KEY to a .env file.
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from linkdrop.tx.signer import generate_key


def generate(env_file: str = None, force: bool = False) -> dict:
    """
    Generate a new key pair.

    Args:
        env_file: .env file to record SECRET_KEY in
        force: Replace an existing SECRET_KEY entry

    Returns:
        Dictionary with the secret key and address
    """
    signer = generate_key()
    info = {
        "secret_key": signer.secret_seed.hex(),
        "address": signer.address,
    }

    if env_file:
        path = Path(env_file)
        lines = path.read_text().splitlines() if path.exists() else []
        if any(line.startswith("SECRET_KEY=") for line in lines):
            if not force:
                raise FileExistsError(f"SECRET_KEY already set in {env_file} (use --force)")
            lines = [line for line in lines if not line.startswith("SECRET_KEY=")]
        lines.append(f"SECRET_KEY={info['secret_key']}")
        path.write_text("\n".join(lines) + "\n")

    return info


def main():
    parser = argparse.ArgumentParser(description="Generate a Sui Ed25519 signing key")
    parser.add_argument(
        "--env-file", "-e",
        help="Append SECRET_KEY to this .env file"
    )
    parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Replace an existing SECRET_KEY"
    )

    args = parser.parse_args()

    try:
        info = generate(args.env_file, args.force)
    except FileExistsError as e:
        print(f"⚠️  {e}")
        sys.exit(1)

    print("✅ Key generated")
    print(f"\n📬 Address:    {info['address']}")
    if args.env_file:
        print(f"📁 SECRET_KEY written to {args.env_file}")
    else:
        print(f"🔑 SECRET_KEY: {info['secret_key']}")

    print("\n💰 To fund on testnet, request SUI from the faucet for the address above.")
    print("\n⚠️  IMPORTANT: Keep the secret key secure!")


if __name__ == "__main__":
    main()
