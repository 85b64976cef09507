"""Catalog seeding — load the YAML question catalog into the database.

Used by the app lifespan (seed an empty table on startup) and by the
``mkulima-seed`` console script::

    mkulima-seed                         # seed only if the table is empty
    mkulima-seed --replace               # overwrite the stored catalog
    mkulima-seed --catalog my_questions.yaml --replace
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from sqlalchemy.ext.asyncio import AsyncSession

from mkulima_db.engine import dispose_engine, session_scope
from mkulima_db.repository import QuestionRepository
from mkulima_survey.catalog import QuestionCatalog

logger = logging.getLogger(__name__)

_repo = QuestionRepository()


async def seed_catalog(
    db: AsyncSession,
    catalog: QuestionCatalog,
    *,
    replace: bool = False,
) -> int:
    """Write ``catalog`` to the questions table.

    Without ``replace`` an already-populated table is left untouched.
    Returns the number of questions written (0 when skipped).  The caller
    commits.
    """
    existing = await _repo.count(db)
    if existing and not replace:
        logger.info("Questions table already has %d rows, skipping seed", existing)
        return 0
    written = await _repo.replace_all(db, catalog.to_records())
    logger.info("Seeded %d questions", written)
    return written


async def _run(args: argparse.Namespace) -> int:
    console = Console()
    try:
        catalog = QuestionCatalog.from_yaml(args.catalog)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]Invalid catalog:[/] {exc}")
        return 1

    try:
        async with session_scope() as db:
            written = await seed_catalog(db, catalog, replace=args.replace)
    finally:
        await dispose_engine()

    if written:
        console.print(f"[green]Seeded {written} questions[/] ({len(catalog.sections)} sections)")
    else:
        console.print("[yellow]Questions table not empty; use --replace to overwrite[/]")
    return 0


def cli() -> None:
    """Console-script entry point: ``mkulima-seed``."""
    parser = argparse.ArgumentParser(description="Seed the questions table from YAML.")
    parser.add_argument(
        "--catalog",
        default=None,
        help="YAML catalog path (default: catalog/questions.yaml at the repo root)",
    )
    parser.add_argument(
        "--replace",
        action="store_true",
        help="Overwrite an already-populated questions table",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    cli()
