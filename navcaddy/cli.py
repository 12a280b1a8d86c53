from __future__ import annotations

import argparse
import json
import logging
import uuid
from pathlib import Path

from dotenv import load_dotenv

from navcaddy.cognition.classifier import ConfidenceClassifier
from navcaddy.cognition.errors import NavCaddyError
from navcaddy.cognition.memory.miss_patterns import MissDirection, patterns_for, summarize_patterns, sync_payload
from navcaddy.cognition.pipeline import NavCaddyPipeline
from navcaddy.cognition.providers.classify_client import LLMClassifyClient
from navcaddy.cognition.providers.factory import build_llm_client
from navcaddy.config.settings import get_log_level, get_sync_endpoint, load_config
from navcaddy.navigation.executor import Navigated
from navcaddy.navigation.prerequisites import Prerequisite, SessionPrerequisiteChecker
from navcaddy.navigation.router import NavigationRouter
from navcaddy.nervous_system import miss_records, operation_queue
from navcaddy.nervous_system.migrate import apply_schema
from navcaddy.nervous_system.operation_queue import OperationStatus, OperationType
from navcaddy.nervous_system.paths import resolve_db_path
from navcaddy.nervous_system.session_snapshots import (
    delete_session_snapshot,
    load_session_snapshot,
    save_session_snapshot,
)
from navcaddy.nervous_system.sync_worker import HttpSyncTransport, SyncWorker
from navcaddy.session.manager import SessionContextManager


def main(argv: list[str] | None = None) -> None:
    _load_env()
    parser = argparse.ArgumentParser(prog="navcaddy")
    parser.add_argument("--log-level", default=get_log_level())
    parser.add_argument("--session-id", default="cli", help="Session to load and save")
    sub = parser.add_subparsers(dest="command", required=True)

    say_parser = sub.add_parser("say", help="Send an utterance through the caddy pipeline")
    say_parser.add_argument("text", help="What the golfer said")
    say_parser.add_argument("--offline", action="store_true", help="Use the offline keyword classifier")
    say_parser.add_argument("--bag-configured", action="store_true", help="Treat the bag as configured")
    say_parser.add_argument("--recovery-data", action="store_true", help="Treat recovery data as available")

    queue_parser = sub.add_parser("queue", help="Inspect the offline operation queue")
    queue_sub = queue_parser.add_subparsers(dest="queue_command", required=True)
    queue_list = queue_sub.add_parser("list", help="List queued operations")
    queue_list.add_argument(
        "--status",
        choices=[item.value for item in OperationStatus],
        default=None,
        help="Filter by status",
    )
    queue_enqueue = queue_sub.add_parser("enqueue", help="Queue an operation")
    queue_enqueue.add_argument("type", choices=[item.value for item in OperationType])
    queue_enqueue.add_argument("--payload", default="{}", help="JSON object payload")
    queue_sub.add_parser("cleanup", help="Delete synced operations")
    queue_sync = queue_sub.add_parser("sync", help="Push pending operations once")
    queue_sync.add_argument("--endpoint", default=None, help="Sync base URL (default NAVCADDY_SYNC_URL)")

    session_parser = sub.add_parser("session", help="Inspect the stored session")
    session_sub = session_parser.add_subparsers(dest="session_command", required=True)
    session_sub.add_parser("show", help="Print the stored session snapshot")
    session_sub.add_parser("clear", help="Forget the stored session")
    session_start = session_sub.add_parser("start-round", help="Start a round in the stored session")
    session_start.add_argument("course", help="Course name")
    session_start.add_argument("--round-id", default=None)

    miss_parser = sub.add_parser("miss", help="Log where a shot went")
    miss_parser.add_argument("direction", choices=[item.value for item in MissDirection])
    miss_parser.add_argument("--club", default=None, help="Club used, e.g. 7-iron")
    miss_parser.add_argument("--pressure", action="store_true", help="Mark as a pressure shot")

    patterns_parser = sub.add_parser("patterns", help="Show miss patterns from logged shots")
    patterns_parser.add_argument("--club", default=None, help="Only shots with this club")
    patterns_parser.add_argument("--pressure", action="store_true", help="Only pressure shots")
    patterns_parser.add_argument("--sync", action="store_true", help="Queue the patterns for sync")

    sub.add_parser("migrate", help="Apply the database schema")

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    db_path = resolve_db_path()
    logging.info("NavCaddy DB path=%s exists=%s", db_path, db_path.exists())
    apply_schema(db_path)

    if args.command == "say":
        _command_say(args)
        return
    if args.command == "queue":
        _command_queue(args)
        return
    if args.command == "session":
        _command_session(args)
        return
    if args.command == "miss":
        _command_miss(args)
        return
    if args.command == "patterns":
        _command_patterns(args)
        return
    if args.command == "migrate":
        print(f"Applied schema to {db_path}")
        return


def _command_say(args: argparse.Namespace) -> None:
    session = _load_session(args.session_id)
    satisfied: set[Prerequisite] = set()
    if args.bag_configured:
        satisfied.add(Prerequisite.BAG_CONFIGURED)
    if args.recovery_data:
        satisfied.add(Prerequisite.RECOVERY_DATA)
    classifier = ConfidenceClassifier(LLMClassifyClient(build_llm_client()))
    pipeline = NavCaddyPipeline(
        classifier,
        session,
        router=NavigationRouter(SessionPrerequisiteChecker(session, satisfied), misses=miss_records.list_misses),
        force_offline=args.offline,
    )
    outcome = pipeline.handle(args.text)
    if outcome is None:
        print("Superseded by a newer request.")
        return
    print(outcome.response)
    if isinstance(outcome.action, Navigated):
        print(f"route: {outcome.action.route}")
    save_session_snapshot(args.session_id, session.snapshot())


def _command_queue(args: argparse.Namespace) -> None:
    if args.queue_command == "list":
        _command_queue_list(args)
        return
    if args.queue_command == "enqueue":
        _command_queue_enqueue(args)
        return
    if args.queue_command == "cleanup":
        removed = operation_queue.delete_synced()
        print(f"Removed {removed} synced operation(s).")
        return
    if args.queue_command == "sync":
        _command_queue_sync(args)
        return


def _command_queue_list(args: argparse.Namespace) -> None:
    if args.status:
        rows = operation_queue.get_operations_by_status(args.status)
    else:
        rows = operation_queue.list_operations()
    if not rows:
        print("Queue is empty.")
        return
    for op in rows:
        error = f" | {op.error_message}" if op.error_message else ""
        print(f"{op.id} | {op.type.value} | {op.status.value} | retries={op.retry_count}{error}")


def _command_queue_enqueue(args: argparse.Namespace) -> None:
    try:
        payload = json.loads(args.payload)
    except ValueError:
        print("Payload must be valid JSON.")
        return
    if not isinstance(payload, dict):
        print("Payload must be a JSON object.")
        return
    op = operation_queue.enqueue_operation(args.type, payload)
    print(f"Queued {op.id} ({op.type.value}).")


def _command_queue_sync(args: argparse.Namespace) -> None:
    endpoint = args.endpoint or get_sync_endpoint()
    if not endpoint:
        print("No sync endpoint configured. Set NAVCADDY_SYNC_URL or pass --endpoint.")
        return
    worker = SyncWorker(HttpSyncTransport(endpoint), config=load_config().sync)
    report = worker.run_once()
    print(
        f"synced={len(report.synced)} retried={len(report.retried)} "
        f"failed={len(report.failed)} skipped={len(report.skipped)}"
    )


def _command_miss(args: argparse.Namespace) -> None:
    record = miss_records.record_miss(args.direction, club=args.club, pressure=args.pressure)
    club = f" with the {record.club}" if record.club else ""
    print(f"Logged a {record.direction.value}{club}.")


def _command_patterns(args: argparse.Namespace) -> None:
    miss_records.prune_misses()
    found = patterns_for(miss_records.list_misses(), club=args.club, pressure_only=args.pressure)
    print(summarize_patterns(found, club=args.club))
    for pattern in found:
        print(
            f"{pattern.direction.value} | {pattern.frequency}/{pattern.total_shots} | "
            f"confidence={pattern.confidence:.2f}"
        )
    if args.sync and found:
        op = operation_queue.enqueue_operation(OperationType.MISS_PATTERN_SYNC, sync_payload(found))
        print(f"Queued {op.id} ({op.type.value}).")


def _command_session(args: argparse.Namespace) -> None:
    if args.session_command == "show":
        context = load_session_snapshot(args.session_id)
        if context is None:
            print("No stored session.")
            return
        print(json.dumps(context.to_dict(), indent=2, ensure_ascii=False))
        return
    if args.session_command == "clear":
        deleted = delete_session_snapshot(args.session_id)
        print("Session cleared." if deleted else "No stored session.")
        return
    if args.session_command == "start-round":
        session = _load_session(args.session_id)
        try:
            session.update_round(args.round_id or str(uuid.uuid4()), args.course)
        except NavCaddyError as exc:
            print(f"Could not start round: {exc}")
            return
        save_session_snapshot(args.session_id, session.snapshot())
        print(f"Round started at {args.course}.")
        return


def _load_session(session_id: str) -> SessionContextManager:
    return SessionContextManager(session_id, load_session_snapshot(session_id))


def _load_env() -> None:
    env_path = Path(__file__).resolve().parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)


def _configure_logging(level_name: str) -> None:
    logging.basicConfig(level=getattr(logging, str(level_name).upper(), logging.INFO))


if __name__ == "__main__":
    main()
