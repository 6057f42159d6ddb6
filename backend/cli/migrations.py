"""CLI for database migrations and schema checks."""
import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

EXPECTED_TABLES = ("prompt_components", "prompt_presets")


def _alembic_config():
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    return cfg


def cmd_migrate(args):
    """Upgrade the database to the given revision (default: head)."""
    from alembic import command

    command.upgrade(_alembic_config(), args.revision)
    return 0


def cmd_stamp(args):
    """Stamp alembic revision without running migrations."""
    from alembic import command

    command.stamp(_alembic_config(), args.revision)
    return 0


def cmd_check(args):
    """Report whether the expected tables exist."""
    from sqlalchemy import inspect

    from app.core.database import get_engine

    existing = set(inspect(get_engine()).get_table_names())
    missing = [t for t in EXPECTED_TABLES if t not in existing]
    for table in EXPECTED_TABLES:
        print(f"{table}: {'ok' if table not in missing else 'MISSING'}")
    return 1 if missing else 0


def build_parser():
    p = argparse.ArgumentParser(prog="migrations")
    sub = p.add_subparsers(dest="cmd")
    s = sub.add_parser("migrate", help="Run migrations (upgrade head)")
    s.add_argument("--revision", "-r", help="Target revision", default="head")
    s.set_defaults(func=cmd_migrate)
    s = sub.add_parser("stamp", help="Stamp alembic to a revision")
    s.add_argument("--revision", "-r", help="Revision to stamp", default="head")
    s.set_defaults(func=cmd_stamp)
    s = sub.add_parser("check", help="Check that the schema exists")
    s.set_defaults(func=cmd_check)
    return p


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
