"""mintgate CLI — command-line interface for a persisted mint gate.

Usage:
    python -m mintgate.cli status
    python -m mintgate.cli build-whitelist --input config/whitelist.txt --output whitelist-merkle-data.json
    python -m mintgate.cli set-root --caller 0xf39F... --whitelist-file whitelist-merkle-data.json
    python -m mintgate.cli start-whitelist --caller 0xf39F...
    python -m mintgate.cli whitelist-mint --caller 0x7099... --amount 3 --whitelist-file whitelist-merkle-data.json
    python -m mintgate.cli start-public --caller 0xf39F... --now 2026-03-03T00:00:00+00:00
    python -m mintgate.cli public-mint --caller 0x3C44... --amount 1
    python -m mintgate.cli end-mint --caller 0xf39F...
    python -m mintgate.cli check-invariants

State lives in --data-dir (state.json + events.jsonl). --now overrides
the wall clock for every time-dependent command.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from mintgate.config import MintPolicy
from mintgate.crypto.whitelist import WhitelistSnapshot, build_whitelist
from mintgate.errors import InputValidationError, MintGateError
from mintgate.logging_setup import configure_logging, log_event
from mintgate.persistence.event_log import EventLog
from mintgate.persistence.state_store import StateStore
from mintgate.service import MintGate
from mintgate.token.ledger import InMemoryTokenLedger

logger = logging.getLogger(__name__)

DEFAULT_DATA = Path(__file__).resolve().parents[2] / "data"


class _Session:
    """A gate loaded from the data dir, saved back after mutations."""

    def __init__(self, args: argparse.Namespace) -> None:
        policy = _load_policy(args.config)

        data_dir: Path = args.data_dir
        data_dir.mkdir(parents=True, exist_ok=True)
        self.store = StateStore(data_dir / "state.json")
        loaded = self.store.load()
        if loaded is None:
            self.ledger = InMemoryTokenLedger(policy.token_id)
            state = None
        else:
            state, self.ledger = loaded
        self.gate = MintGate(
            policy,
            ledger=self.ledger,
            event_log=EventLog(storage_path=data_dir / "events.jsonl"),
            state=state,
        )
        self.now: Optional[datetime] = args.now

    def save(self) -> None:
        self.store.save(self.gate.state, self.ledger)


def _load_policy(path: Optional[Path]) -> MintPolicy:
    """Policy from --config, else from the environment. Bad input fails cleanly."""
    try:
        if path is not None:
            return MintPolicy.from_config_file(path)
        return MintPolicy.from_env()
    except FileNotFoundError:
        raise InputValidationError("Config file not found", details=str(path)) from None
    except ValueError as e:
        raise InputValidationError(f"Invalid mint policy: {e}") from None


def _load_snapshot(path: Path) -> WhitelistSnapshot:
    try:
        return WhitelistSnapshot.load(path)
    except FileNotFoundError:
        raise InputValidationError("Whitelist file not found", details=str(path)) from None
    except (KeyError, ValueError) as e:
        raise InputValidationError(f"Malformed whitelist file: {e}", details=str(path)) from None


def _parse_now(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _proof_from_args(args: argparse.Namespace) -> list[str]:
    if args.proof:
        return [p.strip() for p in args.proof.split(",") if p.strip()]
    if args.whitelist_file:
        proof = _load_snapshot(args.whitelist_file).proof_for(args.caller)
        return [("0x" + p.hex()) for p in proof] if proof is not None else []
    return []


def cmd_status(args: argparse.Namespace) -> int:
    session = _Session(args)
    print(json.dumps(session.gate.status(session.now), indent=2))
    return 0


def cmd_set_root(args: argparse.Namespace) -> int:
    session = _Session(args)
    root = args.root
    if root is None:
        if args.whitelist_file is None:
            raise InputValidationError("Provide --root or --whitelist-file")
        root = _load_snapshot(args.whitelist_file).root
    session.gate.set_whitelist_root(args.caller, root, session.now)
    session.save()
    print(f"Whitelist root set: {session.gate.status(session.now)['whitelist_root']}")
    return 0


def cmd_start_whitelist(args: argparse.Namespace) -> int:
    session = _Session(args)
    started = session.gate.start_whitelist_phase(args.caller, session.now)
    session.save()
    print(f"Whitelist phase started at {started.isoformat()}")
    return 0


def cmd_start_public(args: argparse.Namespace) -> int:
    session = _Session(args)
    started = session.gate.start_public_phase(args.caller, session.now)
    session.save()
    print(f"Public phase started at {started.isoformat()}")
    return 0


def cmd_whitelist_mint(args: argparse.Namespace) -> int:
    session = _Session(args)
    total = session.gate.whitelist_mint(
        args.caller, args.amount, _proof_from_args(args), session.now,
    )
    session.save()
    print(f"Minted {args.amount} (whitelist total for caller: {total})")
    return 0


def cmd_public_mint(args: argparse.Namespace) -> int:
    session = _Session(args)
    total = session.gate.public_mint(args.caller, args.amount, session.now)
    session.save()
    print(f"Minted {args.amount} (public total for caller: {total})")
    return 0


def cmd_admin_mint(args: argparse.Namespace) -> int:
    session = _Session(args)
    session.gate.admin_mint(args.caller, args.to, args.amount, session.now)
    session.save()
    print(f"Admin minted {args.amount} to {args.to}")
    return 0


def cmd_end_mint(args: argparse.Namespace) -> int:
    session = _Session(args)
    unissued = session.gate.end_mint_permanently(args.caller, session.now)
    session.save()
    print(f"Mint permanently ended ({unissued} unissued)")
    return 0


def cmd_add_admin(args: argparse.Namespace) -> int:
    session = _Session(args)
    added = session.gate.add_admin(args.caller, args.account, session.now)
    session.save()
    print(f"Admin added: {args.account}" if added else f"Already admin: {args.account}")
    return 0


def cmd_remove_admin(args: argparse.Namespace) -> int:
    session = _Session(args)
    removed = session.gate.remove_admin(args.caller, args.account, session.now)
    session.save()
    print(f"Admin removed: {args.account}" if removed else f"Not an admin: {args.account}")
    return 0


def cmd_verify_whitelist(args: argparse.Namespace) -> int:
    session = _Session(args)
    snapshot = _load_snapshot(args.whitelist_file)
    accounts = args.account or snapshot.addresses
    proofs = [snapshot.proof_for(a) or [] for a in accounts]
    results = session.gate.verify_whitelist(accounts, proofs)
    print(json.dumps(dict(zip(accounts, results)), indent=2))
    return 0 if all(results) else 1


def cmd_build_whitelist(args: argparse.Namespace) -> int:
    try:
        lines = args.input.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        raise InputValidationError("Whitelist input not found", details=str(args.input)) from None
    addresses = [ln.strip() for ln in lines if ln.strip() and not ln.strip().startswith("#")]
    if not addresses:
        raise InputValidationError("Whitelist input has no addresses", details=str(args.input))
    snapshot = build_whitelist(addresses)
    snapshot.save(args.output)
    log_event(
        logger, "whitelist_built",
        root="0x" + snapshot.root.hex(), total=len(snapshot.addresses), output=str(args.output),
    )
    print(f"Merkle root: 0x{snapshot.root.hex()}")
    print(f"Addresses: {len(snapshot.addresses)}")
    print(f"Proofs written to {args.output}")
    return 0


def cmd_balance(args: argparse.Namespace) -> int:
    session = _Session(args)
    gate = session.gate
    print(json.dumps({
        "account": args.account,
        "balance": gate.ledger.balance_of(args.account, gate.policy.token_id),
        "whitelist_minted": gate.whitelist_minted(args.account),
        "public_minted": gate.public_minted(args.account),
        "whitelist_remaining": gate.whitelist_remaining_for(args.account),
        "public_remaining": gate.public_remaining_for(args.account),
        "is_admin": gate.is_admin(args.account),
    }, indent=2))
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run mint policy invariant checks."""
    tools_dir = Path(__file__).resolve().parents[2] / "tools"
    sys.path.insert(0, str(tools_dir))
    from check_invariants import check
    return check()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mintgate",
        description="mintgate — whitelist/public mint gate CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to mint policy JSON (default: MINTGATE_CONFIG or config/mint_policy.json)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=DEFAULT_DATA,
        help="Directory holding state.json and events.jsonl (default: data/)",
    )
    parser.add_argument(
        "--now",
        type=_parse_now,
        default=None,
        help="ISO-8601 time to use instead of the wall clock",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show gate status")

    p_root = sub.add_parser("set-root", help="Install the whitelist Merkle root")
    p_root.add_argument("--caller", required=True, help="Admin address")
    p_root.add_argument("--root", help="0x-prefixed 32-byte root")
    p_root.add_argument("--whitelist-file", type=Path, help="Read the root from a snapshot file")

    p_sw = sub.add_parser("start-whitelist", help="Start the whitelist phase")
    p_sw.add_argument("--caller", required=True, help="Admin address")

    p_sp = sub.add_parser("start-public", help="Start the public phase")
    p_sp.add_argument("--caller", required=True, help="Admin address")

    p_wm = sub.add_parser("whitelist-mint", help="Mint during the whitelist phase")
    p_wm.add_argument("--caller", required=True, help="Minter address")
    p_wm.add_argument("--amount", type=int, required=True)
    p_wm.add_argument("--proof", help="Comma-separated 0x proof nodes")
    p_wm.add_argument("--whitelist-file", type=Path, help="Look the proof up in a snapshot file")

    p_pm = sub.add_parser("public-mint", help="Mint during the public phase")
    p_pm.add_argument("--caller", required=True, help="Minter address")
    p_pm.add_argument("--amount", type=int, required=True)

    p_am = sub.add_parser("admin-mint", help="Administrative mint")
    p_am.add_argument("--caller", required=True, help="Admin address")
    p_am.add_argument("--to", required=True, help="Recipient address")
    p_am.add_argument("--amount", type=int, required=True)

    p_end = sub.add_parser("end-mint", help="Permanently end minting")
    p_end.add_argument("--caller", required=True, help="Admin address")

    p_add = sub.add_parser("add-admin", help="Grant admin (super-admin only)")
    p_add.add_argument("--caller", required=True, help="Super-admin address")
    p_add.add_argument("--account", required=True)

    p_rm = sub.add_parser("remove-admin", help="Revoke admin (super-admin only)")
    p_rm.add_argument("--caller", required=True, help="Super-admin address")
    p_rm.add_argument("--account", required=True)

    p_vw = sub.add_parser("verify-whitelist", help="Verify snapshot proofs against the stored root")
    p_vw.add_argument("--whitelist-file", type=Path, required=True)
    p_vw.add_argument("--account", action="append", help="Limit to these accounts (repeatable)")

    p_bw = sub.add_parser("build-whitelist", help="Build a whitelist tree and proof file")
    p_bw.add_argument("--input", type=Path, required=True, help="One address per line")
    p_bw.add_argument(
        "--output", type=Path, default=Path("whitelist-merkle-data.json"),
        help="Snapshot output path (default: whitelist-merkle-data.json)",
    )

    p_bal = sub.add_parser("balance", help="Show balance and allocations for an account")
    p_bal.add_argument("--account", required=True)

    sub.add_parser("check-invariants", help="Run mint policy invariant checks")

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands: dict[str, Callable[[argparse.Namespace], int]] = {
        "status": cmd_status,
        "set-root": cmd_set_root,
        "start-whitelist": cmd_start_whitelist,
        "start-public": cmd_start_public,
        "whitelist-mint": cmd_whitelist_mint,
        "public-mint": cmd_public_mint,
        "admin-mint": cmd_admin_mint,
        "end-mint": cmd_end_mint,
        "add-admin": cmd_add_admin,
        "remove-admin": cmd_remove_admin,
        "verify-whitelist": cmd_verify_whitelist,
        "build-whitelist": cmd_build_whitelist,
        "balance": cmd_balance,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except MintGateError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
