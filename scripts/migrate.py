"""Apply, roll back, or generate Alembic migrations.

Usage:
    python scripts/migrate.py                  upgrade to head
    python scripts/migrate.py down [revision]  downgrade (default: one step)
    python scripts/migrate.py create <message> autogenerate a revision
"""

import sys

from alembic import command
from alembic.config import Config

ALEMBIC_INI = "alembic.ini"


def _run(label: str, action, *args, **kwargs) -> None:
    alembic_cfg = Config(ALEMBIC_INI)
    print(f"{label}...")
    try:
        action(alembic_cfg, *args, **kwargs)
    except Exception as e:
        print(f"✗ {label} failed: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"✓ {label} done")


def main(argv: list[str]) -> None:
    if not argv:
        _run("Upgrading schema", command.upgrade, "head")
    elif argv[0] == "down":
        target = argv[1] if len(argv) > 1 else "-1"
        _run(f"Downgrading schema to {target}", command.downgrade, target)
    elif argv[0] == "create" and len(argv) > 1:
        message = " ".join(argv[1:])
        _run(f"Creating revision '{message}'", command.revision, message=message, autogenerate=True)
    else:
        print(__doc__)
        sys.exit(2)


if __name__ == "__main__":
    main(sys.argv[1:])
