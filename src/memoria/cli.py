"""Command line interface.

Provides subcommands for creating memorials, contributing memories and
generating narratives against the local SQLite database.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .config import NarrativeConfig, load_config
from .logging import configure_logger
from .memorial import Emotion, MemorialNotFoundError, MemorialStore, MemoryNotFoundError, Style, Tone
from .narrative import NarrativeService
from .ratelimit import SQLiteRateLimitStore


def _load(args: argparse.Namespace) -> NarrativeConfig:
    config_path = Path(args.config) if args.config else None
    return load_config(config_path)


def _open_store(config: NarrativeConfig) -> MemorialStore:
    """Open the memorial store, creating tables on first use."""
    store = MemorialStore(config.db_path)
    store.init_db()
    return store


def _build_service(config: NarrativeConfig) -> NarrativeService:
    rate_store = SQLiteRateLimitStore(config.db_path)
    rate_store.init_db()
    return NarrativeService.from_config(
        config,
        store=_open_store(config),
        rate_limit_store=rate_store,
        event_logger=configure_logger(config.log_dir),
    )


def _close(service: NarrativeService) -> None:
    service.store.close()
    service.limiter.store.close()


def _preview(text: str, width: int = 60) -> str:
    text = " ".join(text.split())
    if len(text) > width:
        return text[: width - 3] + "..."
    return text


def cmd_init(args: argparse.Namespace) -> int:
    """Create the database tables."""
    config = _load(args)
    _open_store(config).close()
    rate_store = SQLiteRateLimitStore(config.db_path)
    rate_store.init_db()
    rate_store.close()
    print(f"Initialized database: {config.db_path}")
    return 0


def cmd_memorial_create(args: argparse.Namespace) -> int:
    """Create a memorial."""
    store = _open_store(_load(args))
    try:
        memorial = store.create_memorial(
            args.name,
            args.owner,
            birth_date=args.born,
            passed_date=args.passed,
            tone=args.tone,
            style=args.style,
        )
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    finally:
        store.close()

    print(f"Created memorial: {memorial.id}")
    return 0


def cmd_memorial_show(args: argparse.Namespace) -> int:
    """Show a memorial and its current narrative."""
    store = _open_store(_load(args))
    try:
        memorial = store.get(args.memorial_id)
        count = len(store.list_memories(args.memorial_id))
    except MemorialNotFoundError:
        print(f"Error: Memorial '{args.memorial_id}' not found.")
        return 1
    finally:
        store.close()

    print(f"\nMemorial: {memorial.full_name}")
    print("-" * 40)
    print(f"ID: {memorial.id}")
    print(f"Owner: {memorial.owner_id}")
    if memorial.birth_date or memorial.passed_date:
        print(f"Dates: {memorial.birth_date or '?'} - {memorial.passed_date or '?'}")
    print(f"Tone: {memorial.tone.value}")
    print(f"Style: {memorial.style.value}")
    print(f"Memories: {count}")

    if memorial.narrative:
        print(f"\n{memorial.narrative}")
    else:
        print("\nNo narrative yet.")
    return 0


def cmd_memorial_voice(args: argparse.Namespace) -> int:
    """Change tone and/or style of a memorial."""
    if args.tone is None and args.style is None:
        print("Error: Give --tone and/or --style.")
        return 1

    service = _build_service(_load(args))
    try:
        memorial = service.set_voice(args.memorial_id, args.user, tone=args.tone, style=args.style)
    except MemorialNotFoundError:
        print(f"Error: Memorial '{args.memorial_id}' not found.")
        return 1
    except (PermissionError, ValueError) as e:
        print(f"Error: {e}")
        return 1
    finally:
        _close(service)

    print(f"Voice updated: {memorial.tone.value}, {memorial.style.value}")
    return 0


def cmd_memory_add(args: argparse.Namespace) -> int:
    """Contribute a memory to a memorial."""
    store = _open_store(_load(args))
    try:
        memory = store.add_memory(
            args.memorial_id,
            args.content,
            contributor_name=args.contributor,
            contributor_id=args.contributor_id,
            relationship=args.relationship,
            time_period=args.period,
            emotion=args.emotion,
        )
    except MemorialNotFoundError:
        print(f"Error: Memorial '{args.memorial_id}' not found.")
        return 1
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    finally:
        store.close()

    print(f"Added memory: {memory.id}")
    return 0


def cmd_memory_list(args: argparse.Namespace) -> int:
    """List the memories of a memorial."""
    store = _open_store(_load(args))
    try:
        if not store.exists(args.memorial_id):
            print(f"Error: Memorial '{args.memorial_id}' not found.")
            return 1
        memories = store.list_memories(args.memorial_id)
    finally:
        store.close()

    if not memories:
        print("No memories yet.")
        return 0

    print(f"\n{'ID':<34} {'Contributor':<20} Memory")
    print("-" * 80)
    for memory in memories:
        who = memory.contributor_name or memory.relationship or "-"
        print(f"{memory.id:<34} {who[:20]:<20} {_preview(memory.content, 24)}")

    print(f"\nTotal: {len(memories)} memory(ies)")
    return 0


def cmd_memory_delete(args: argparse.Namespace) -> int:
    """Delete a memory as its contributor or the memorial owner."""
    service = _build_service(_load(args))
    try:
        service.delete_memory(args.memory_id, args.user)
    except MemoryNotFoundError:
        print(f"Error: Memory '{args.memory_id}' not found.")
        return 1
    except PermissionError as e:
        print(f"Error: {e}")
        return 1
    finally:
        _close(service)

    print(f"Deleted memory: {args.memory_id}")
    return 0


def cmd_narrate(args: argparse.Namespace) -> int:
    """Generate and save the narrative of a memorial."""
    service = _build_service(_load(args))
    try:
        result = asyncio.run(service.generate_narrative(args.memorial_id, args.user))
    finally:
        _close(service)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    elif result.success:
        print(result.narrative)
    else:
        print(f"Error: {result.error}")

    if result.warning:
        print(f"Warning: {result.warning}", file=sys.stderr)

    return 0 if result.success else 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the memoria CLI."""
    parser = argparse.ArgumentParser(
        prog="memoria",
        description="First-person memorial narratives",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to config.json (default: ~/.memoria/config.json)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Sub-command help")

    # init command
    init_parser = subparsers.add_parser("init", help="Create the database")
    init_parser.set_defaults(handler=cmd_init)

    # memorial commands
    memorial_parser = subparsers.add_parser("memorial", help="Manage memorials")
    memorial_sub = memorial_parser.add_subparsers(dest="action")

    create = memorial_sub.add_parser("create", help="Create a memorial")
    create.add_argument("--name", required=True, help="Full name of the person")
    create.add_argument("--owner", required=True, help="User id of the owner")
    create.add_argument("--born", help="Birth date")
    create.add_argument("--passed", help="Date of passing")
    create.add_argument("--tone", choices=[t.value for t in Tone], help="Narrative tone")
    create.add_argument("--style", choices=[s.value for s in Style], help="Narrative style")
    create.set_defaults(handler=cmd_memorial_create)

    show = memorial_sub.add_parser("show", help="Show a memorial")
    show.add_argument("memorial_id", help="Memorial id")
    show.set_defaults(handler=cmd_memorial_show)

    voice = memorial_sub.add_parser("voice", help="Change tone and style")
    voice.add_argument("memorial_id", help="Memorial id")
    voice.add_argument("--user", required=True, help="Calling user id")
    voice.add_argument("--tone", choices=[t.value for t in Tone], help="New tone")
    voice.add_argument("--style", choices=[s.value for s in Style], help="New style")
    voice.set_defaults(handler=cmd_memorial_voice)

    # memory commands
    memory_parser = subparsers.add_parser("memory", help="Manage memories")
    memory_sub = memory_parser.add_subparsers(dest="action")

    add = memory_sub.add_parser("add", help="Contribute a memory")
    add.add_argument("memorial_id", help="Memorial id")
    add.add_argument("--content", required=True, help="The memory")
    add.add_argument("--contributor", help="Contributor display name")
    add.add_argument("--contributor-id", help="Contributor user id")
    add.add_argument("--relationship", help="Relationship to the person")
    add.add_argument("--period", help="Time period, e.g. 'the 1980s'")
    add.add_argument("--emotion", choices=[e.value for e in Emotion], help="Emotional tag")
    add.set_defaults(handler=cmd_memory_add)

    list_parser = memory_sub.add_parser("list", help="List memories")
    list_parser.add_argument("memorial_id", help="Memorial id")
    list_parser.set_defaults(handler=cmd_memory_list)

    delete = memory_sub.add_parser("delete", help="Delete a memory")
    delete.add_argument("memory_id", help="Memory id")
    delete.add_argument("--user", required=True, help="Calling user id")
    delete.set_defaults(handler=cmd_memory_delete)

    # narrate command
    narrate = subparsers.add_parser("narrate", help="Generate a narrative")
    narrate.add_argument("memorial_id", help="Memorial id")
    narrate.add_argument("--user", required=True, help="Calling user id")
    narrate.add_argument("--json", action="store_true", help="Print the JSON result")
    narrate.set_defaults(handler=cmd_narrate)

    return parser


def run_cli(argv: list[str] | None = None) -> int:
    """Run the CLI with given arguments.

    Args:
        argv: Command-line arguments. Uses sys.argv[1:] if None.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0 if args.command is None else 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(run_cli())
