#!/usr/bin/env python3
"""
Operate a timelock registry stored in a SQL database.

Usage:
    python3 scripts/timelock.py init --admin <principal>
    python3 scripts/timelock.py --as <principal> queue <operation-id> <delay>
    python3 scripts/timelock.py --as <principal> execute <operation-id>
    python3 scripts/timelock.py --as <principal> cancel <operation-id>
    python3 scripts/timelock.py state <operation-id>
    python3 scripts/timelock.py history <operation-id> [--json]
    python3 scripts/timelock.py verify-chain

Examples:
    # Bootstrap with the configured database
    python3 scripts/timelock.py init --admin ops-admin

    # Queue an upgrade to run in one hour
    python3 scripts/timelock.py --as ops-admin queue upgrade-v2 3600

    # Identifiers are UTF-8 text by default; pass raw bytes as hex
    python3 scripts/timelock.py state --hex 6f7031

    # Custom database URL
    python3 scripts/timelock.py --db-url sqlite:////tmp/tl.db state upgrade-v2

``--as`` asserts the principal whose authority this invocation carries.
Whoever can run this script against the database is trusted to make that
assertion; the registry still refuses any principal other than the
administrator.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

import yaml  # noqa: E402

from timelock_config import ConfigValidationError, get_active_config  # noqa: E402
from timelock_kernel.db.engine import (  # noqa: E402
    create_tables,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from timelock_kernel.domain.authority import InvocationAuthority  # noqa: E402
from timelock_kernel.domain.clock import SystemClock  # noqa: E402
from timelock_kernel.exceptions import (  # noqa: E402
    InvalidOperationIdError,
    TimelockError,
)
from timelock_kernel.logging_config import configure_logging  # noqa: E402
from timelock_kernel.selectors.notification_selector import (  # noqa: E402
    NotificationSelector,
)
from timelock_kernel.services.notification_log import SqlNotificationLog  # noqa: E402
from timelock_kernel.services.operation_registry import OperationRegistry  # noqa: E402
from timelock_kernel.storage.sql import SqlStore  # noqa: E402


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Operate a timelock registry.")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--db-url", help="Database URL (overrides the config)")
    parser.add_argument(
        "--as",
        dest="principal",
        type=_principal,
        help="Principal whose authority this call carries",
    )
    parser.add_argument("--json", action="store_true", help="Emit JSON output")

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Set the administrator (once)")
    init.add_argument("--admin", required=True, type=_principal)

    def with_operation(name: str, help_text: str) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("operation_id")
        p.add_argument(
            "--hex", action="store_true", help="operation_id is hex-encoded bytes"
        )
        return p

    queue = with_operation("queue", "Schedule an operation")
    queue.add_argument("delay", type=int, help="Seconds until executable")
    with_operation("execute", "Execute a ready operation")
    with_operation("cancel", "Cancel a live operation")
    with_operation("state", "Show lifecycle state and scheduled time")
    with_operation("history", "Show the notification history of an operation")
    sub.add_parser("verify-chain", help="Validate the notification hash chain")
    return parser


def _principal(value: str) -> str:
    if not value:
        raise argparse.ArgumentTypeError("principal must be non-empty")
    return value


def _operation_id(args) -> bytes:
    if args.hex:
        try:
            return bytes.fromhex(args.operation_id)
        except ValueError:
            raise InvalidOperationIdError(f"non-hex text {args.operation_id!r}")
    return args.operation_id.encode("utf-8")


def _emit(args, data: dict, text: str) -> None:
    print(json.dumps(data, sort_keys=True) if args.json else text)


def run(args, config) -> None:
    clock = SystemClock()
    authority = InvocationAuthority()
    principals = (args.principal,) if args.principal else ()

    with session_scope() as session:
        registry = OperationRegistry(
            store=SqlStore(session),
            clock=clock,
            authority=authority,
            notifications=SqlNotificationLog(session, clock),
            policy=config.delay_policy(),
            pinned_admin=config.timelock.pinned_admin,
        )
        selector = NotificationSelector(session)

        with authority.authorize(*principals):
            if args.command == "init":
                registry.initialize(args.admin)
                _emit(args, {"admin": args.admin}, f"initialized: admin={args.admin}")
            elif args.command == "queue":
                scheduled = registry.queue(_operation_id(args), args.delay)
                _emit(
                    args,
                    {
                        "operation_id": scheduled.operation_id_hex,
                        "execute_at": scheduled.execute_at,
                    },
                    f"queued: {args.operation_id} executable at {scheduled.execute_at}",
                )
            elif args.command == "execute":
                executed_at = registry.execute(_operation_id(args))
                _emit(
                    args,
                    {"operation_id": _operation_id(args).hex(), "executed_at": executed_at},
                    f"executed: {args.operation_id} at {executed_at}",
                )
            elif args.command == "cancel":
                registry.cancel(_operation_id(args))
                _emit(
                    args,
                    {"operation_id": _operation_id(args).hex()},
                    f"cancelled: {args.operation_id}",
                )
            elif args.command == "state":
                op_id = _operation_id(args)
                state = registry.get_state(op_id)
                execute_at = registry.get_execute_at(op_id)
                _emit(
                    args,
                    {"state": state.value, "execute_at": execute_at},
                    f"{args.operation_id}: {state.value} (execute_at={execute_at})",
                )
            elif args.command == "history":
                records = selector.history(_operation_id(args))
                if args.json:
                    print(json.dumps(
                        [
                            {
                                "seq": r.seq,
                                "action": r.action,
                                "payload": r.payload,
                                "published_at": r.published_at,
                            }
                            for r in records
                        ],
                        sort_keys=True,
                    ))
                else:
                    if not records:
                        print("(no notifications)")
                    for r in records:
                        print(f"#{r.seq} {r.action} at {r.published_at} {r.payload}")
            elif args.command == "verify-chain":
                count = selector.validate_chain()
                _emit(args, {"verified": count}, f"chain ok: {count} entries")


def _fail(code: str, exc: Exception) -> int:
    print(f"{code}: {exc}", file=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = get_active_config(args.config)
    except ConfigValidationError as exc:
        return _fail(exc.code, exc)
    except (OSError, KeyError, yaml.YAMLError) as exc:
        return _fail("CONFIG_LOAD_FAILED", exc)

    configure_logging(level=logging.getLevelNamesMapping()[config.logging.level.upper()])
    init_engine_from_url(args.db_url or config.database.url, echo=config.database.echo)
    try:
        create_tables()
        run(args, config)
    except TimelockError as exc:
        return _fail(exc.code, exc)
    finally:
        reset_engine()
    return 0


if __name__ == "__main__":
    sys.exit(main())
