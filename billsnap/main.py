"""Command line entry point for the BillSnap license gate."""

from __future__ import annotations

import argparse
import configparser
import json
import logging
import sys
from typing import List, Optional

from .config import Config, load_config
from .license import LicenseManager, RemoteLicenseManager
from .license.storage import JsonFileStore


def build_manager(config: Config) -> LicenseManager:
    """Construct the license manager variant selected by ``config.mode``."""
    store = JsonFileStore(config.storage_path)
    if config.mode == "remote":
        return RemoteLicenseManager(
            store,
            url=config.remote_url,
            instance_name=config.instance_name,
            timeout=config.remote_timeout,
        )
    if config.mode == "gate":
        return LicenseManager(store, trial_limit=0)
    return LicenseManager(store, trial_limit=config.trial_limit)


def _print_status(manager: LicenseManager) -> None:
    payload = manager.get_status().to_dict()
    if isinstance(manager, RemoteLicenseManager):
        payload["license"] = manager.get_license_info().to_dict()
    print(json.dumps(payload, indent=2))


def _cmd_status(manager: LicenseManager, args: argparse.Namespace, config: Config) -> int:
    _print_status(manager)
    return 0


def _cmd_sample_key(manager: LicenseManager, args: argparse.Namespace, config: Config) -> int:
    print(manager.generate_sample_key())
    return 0


def _cmd_activate(manager: LicenseManager, args: argparse.Namespace, config: Config) -> int:
    result = manager.activate_license(args.key)
    print(result.message)
    return 0 if result.success else 1


def _cmd_deactivate(manager: LicenseManager, args: argparse.Namespace, config: Config) -> int:
    if not isinstance(manager, RemoteLicenseManager):
        print("Deactivation is only available in remote mode", file=sys.stderr)
        return 1
    manager.deactivate()
    print("License deactivated")
    return 0


def _cmd_record_invoice(manager: LicenseManager, args: argparse.Namespace, config: Config) -> int:
    if not manager.record_invoice():
        print("Trial limit reached. Please activate a license.", file=sys.stderr)
        return 1
    remaining = manager.get_remaining_trial_invoices()
    if manager.is_licensed():
        print("Invoice recorded (licensed)")
    else:
        print(f"Invoice recorded ({int(remaining)}/{manager.trial_limit} trial invoices remaining)")
    return 0


def _cmd_serve(manager: LicenseManager, args: argparse.Namespace, config: Config) -> int:
    from .web import create_app

    print(f"Sample License Key: {manager.generate_sample_key()}")
    print("License Status:")
    _print_status(manager)

    host = args.host or config.host
    port = args.port or config.port
    print(f"\nStarting BillSnap on http://{host}:{port}\n")
    create_app(manager).run(debug=config.debug, host=host, port=port, use_reloader=False)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="billsnap-license", description="BillSnap license gate")
    parser.add_argument("-c", "--config", help="Path to config.ini (default: $BILLSNAP_CONFIG or ./config.ini)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show the current license status").set_defaults(func=_cmd_status)
    sub.add_parser("sample-key", help="Print a valid sample license key").set_defaults(func=_cmd_sample_key)

    activate = sub.add_parser("activate", help="Activate a license key")
    activate.add_argument("key")
    activate.set_defaults(func=_cmd_activate)

    sub.add_parser("deactivate", help="Remove the active license (remote mode)").set_defaults(func=_cmd_deactivate)
    sub.add_parser("record-invoice", help="Count one invoice against the trial").set_defaults(
        func=_cmd_record_invoice
    )

    serve = sub.add_parser("serve", help="Run the web app")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.set_defaults(func=_cmd_serve)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except (ValueError, configparser.Error) as exc:
        print(f"ERROR: invalid configuration: {exc}", file=sys.stderr)
        return 2

    manager = build_manager(config)
    return args.func(manager, args, config)


if __name__ == "__main__":
    sys.exit(main())
