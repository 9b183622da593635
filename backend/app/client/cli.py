"""
Pocket Ledger offline client.

Usage:
    pocketledger-client --user alice status             # Show cache and queue status
    pocketledger-client --user alice sync               # Replay pending changes
    pocketledger-client --user alice pull               # Overwrite cache from server
    pocketledger-client --user alice add-transaction expense 12.5 "Lunch out" Food
    pocketledger-client --user alice delete-transaction ID
    pocketledger-client --user alice add-debt debtor 100 "Sam Lee" "Concert tickets"
    pocketledger-client --user alice accounts [--add NAME | --remove ID]
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import httpx

from app.client.ledger import OfflineLedger
from app.client.local_store import LocalStore
from app.client.sync import SyncResult
from app.core.config import get_settings
from app.core.exceptions import PocketLedgerError


def _print_results(results: dict[str, SyncResult]) -> None:
    for resource, result in results.items():
        if not result.attempted:
            print(f"  {resource}: nothing to sync ({result.remaining} pending)")
            continue
        title = result.title or "No changes synced"
        print(f"  {resource}: {title} - {result.synced} synced, {result.remaining} remaining")
        if result.error:
            print(f"    error: {result.error}")


def cmd_status(ledger: OfflineLedger) -> int:
    totals = ledger.totals()
    debt_totals = ledger.debt_totals()
    state = "online" if ledger.online else "offline"
    print(f"Connection: {state}")
    print(f"Pending changes: {ledger.pending_count()}")
    print(f"Transactions: {len(ledger.transactions())}")
    print(f"  Total income:   {totals['total_income']:,.2f}")
    print(f"  Total expenses: {totals['total_expenses']:,.2f}")
    print(f"  Balance:        {totals['balance']:,.2f}")
    print(f"Debt records: {len(ledger.debts())}")
    print(f"  Owed to you: {debt_totals['total_owed_to_user']:,.2f}")
    print(f"  You owe:     {debt_totals['total_owed_by_user']:,.2f}")
    return 0


def cmd_sync(ledger: OfflineLedger) -> int:
    if not ledger.online:
        print("Server unreachable. Changes stay queued.")
        return 1
    results = ledger.sync()
    print("Sync results:")
    _print_results(results)
    return 0 if all(r.error is None and (r.refreshed or not r.attempted) for r in results.values()) else 1


def cmd_pull(ledger: OfflineLedger) -> int:
    if not ledger.online:
        print("Server unreachable. Using local data.")
        return 1
    results = ledger.load()
    print("Loaded from server:")
    _print_results(results)
    return 0 if all(r.refreshed for r in results.values()) else 1


def cmd_accounts(ledger: OfflineLedger, args: argparse.Namespace) -> int:
    if args.add:
        account = ledger.add_account(args.add)
        print(f"Added account {account['name']} ({account['id']})")
    elif args.remove:
        if not ledger.remove_account(args.remove):
            print(f"No account with id {args.remove}")
            return 1
        print(f"Removed account {args.remove}")
    for account in ledger.accounts():
        print(f"  {account['id']}  {account['name']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog="pocketledger-client", description="Pocket Ledger offline client")
    parser.add_argument("--api", default=settings.api_url, help="API base URL")
    parser.add_argument("--cache", type=Path, default=settings.cache_path, help="Local cache file")
    parser.add_argument("--user", default=os.environ.get("POCKETLEDGER_USER"), help="Username")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("status", help="Show cache and queue status")
    subparsers.add_parser("sync", help="Replay pending changes")
    subparsers.add_parser("pull", help="Overwrite the local cache from the server")

    add_txn = subparsers.add_parser("add-transaction", help="Record income or an expense")
    add_txn.add_argument("type", choices=["income", "expense"])
    add_txn.add_argument("amount", type=float)
    add_txn.add_argument("reason")
    add_txn.add_argument("category")
    add_txn.add_argument("--date")
    add_txn.add_argument("--account")

    del_txn = subparsers.add_parser("delete-transaction", help="Delete a transaction")
    del_txn.add_argument("id")

    add_debt = subparsers.add_parser("add-debt", help="Record a debt or a debtor")
    add_debt.add_argument("type", choices=["debt", "debtor"])
    add_debt.add_argument("amount", type=float)
    add_debt.add_argument("person_name")
    add_debt.add_argument("reason")

    accounts = subparsers.add_parser("accounts", help="List or manage local accounts")
    accounts.add_argument("--add", metavar="NAME")
    accounts.add_argument("--remove", metavar="ID")

    return parser


def run(args: argparse.Namespace, http: httpx.Client) -> int:
    ledger = OfflineLedger(http, LocalStore(args.cache))
    ledger.transactions_sync.probe()
    ledger.debts_sync.online = ledger.transactions_sync.online

    if args.command == "status":
        return cmd_status(ledger)
    if args.command == "sync":
        return cmd_sync(ledger)
    if args.command == "pull":
        return cmd_pull(ledger)
    if args.command == "accounts":
        return cmd_accounts(ledger, args)
    if args.command == "add-transaction":
        data = {
            "type": args.type,
            "amount": args.amount,
            "reason": args.reason,
            "category": args.category,
            "account_name": args.account,
        }
        if args.date:
            data["date"] = args.date
        transaction = ledger.add_transaction(data)
        print(f"Added transaction {transaction['id']} ({ledger.pending_count()} changes pending)")
        return 0
    if args.command == "delete-transaction":
        ledger.delete_transaction(args.id)
        print(f"Deleted transaction {args.id} ({ledger.pending_count()} changes pending)")
        return 0
    if args.command == "add-debt":
        debt = ledger.add_debt(
            {
                "type": args.type,
                "amount": args.amount,
                "person_name": args.person_name,
                "reason": args.reason,
            }
        )
        print(f"Added debt record {debt['id']} ({ledger.pending_count()} changes pending)")
        return 0
    return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if not args.user:
        print("A username is required (--user or POCKETLEDGER_USER).", file=sys.stderr)
        return 2

    with httpx.Client(base_url=args.api, headers={"X-User-Id": args.user}, timeout=10.0) as http:
        try:
            return run(args, http)
        except PocketLedgerError as e:
            print(f"Error: {e.message}", file=sys.stderr)
            for detail in e.details.get("errors", []):
                location = ".".join(str(part) for part in detail.get("loc", []))
                print(f"  {location}: {detail.get('msg')}", file=sys.stderr)
            return 1


if __name__ == "__main__":
    sys.exit(main())
