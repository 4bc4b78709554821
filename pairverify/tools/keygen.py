"""
pairverify-keygen: manage the controller identity and accessory keys.

Usage:
    pairverify-keygen init --identifier controller-1
    pairverify-keygen show
    pairverify-keygen add-accessory bridge-1 <64 hex chars>
    pairverify-keygen --config-dir /tmp/pv show
"""

import argparse
import logging
import sys
from typing import List, Optional

from ..config import PairVerifyConfig, ConfigError


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pairverify-keygen",
        description="Manage pair-verify controller identity and accessory keys"
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        default=None,
        help="Configuration directory (default: ~/.pairverify)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    
    commands = parser.add_subparsers(dest="command", required=True)
    
    init = commands.add_parser("init", help="Generate a new controller identity")
    init.add_argument("--identifier", required=True, help="Controller pairing identifier")
    init.add_argument(
        "--force",
        action="store_true",
        help="Replace an existing identity",
    )
    
    commands.add_parser("show", help="Show the controller identifier and public key")
    
    add = commands.add_parser("add-accessory", help="Register an accessory long-term public key")
    add.add_argument("handle", help="Accessory handle")
    add.add_argument("ltpk", help="Accessory Ed25519 public key (64 hex characters)")
    
    commands.add_parser("list", help="List registered accessories")
    
    return parser


def run(args: argparse.Namespace) -> int:
    config = PairVerifyConfig(args.config_dir)
    
    if args.command == "init":
        if config.identity_exists() and not args.force:
            raise ConfigError("Controller identity already exists, use --force to replace it")
        identity = config.create_new_controller_identity(args.identifier)
        print(f"Identifier: {identity.identifier}")
        print(f"LTPK:       {identity.ltpk.hex()}")
    elif args.command == "show":
        identity = config.get_controller_identity()
        print(f"Identifier: {identity.identifier}")
        print(f"LTPK:       {identity.ltpk.hex()}")
    elif args.command == "add-accessory":
        config.add_accessory(args.handle, args.ltpk)
        print(f"Accessory {args.handle} registered")
    elif args.command == "list":
        for handle in config.identity_store().handles():
            print(handle)
    
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    
    try:
        return run(args)
    except ConfigError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
