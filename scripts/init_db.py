from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import func, inspect, select

from hfbmm.db.engine import get_sessionmaker, make_engine
from hfbmm.models import AwardTier, Base
from hfbmm.workflows import tier_eligibility


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def print_summary() -> None:
    """Print row counts per table and the draw state of every award tier."""
    engine = make_engine()
    tables = set(inspect(engine).get_table_names())
    Session = get_sessionmaker(engine)
    with Session() as session:
        for name, table in sorted(Base.metadata.tables.items()):
            if name not in tables:
                print(f"{name}: missing")
                continue
            count = session.scalar(select(func.count()).select_from(table))
            print(f"{name}: {count} row(s)")

        eligibility = tier_eligibility(session)
        for tier in AwardTier.ordered(session):
            state = eligibility[tier.id]
            print(
                f"[{tier.name}] {tier.reward_name}: "
                f"{state.remaining_slots} prize(s) left, "
                f"{len(state.eligible_stores)} eligible store(s)"
            )


def main() -> None:
    """Apply migrations (default to head) and report the resulting state."""
    upgrade_db()
    print_summary()


if __name__ == "__main__":
    main()
