"""Interactive terminal respondent for the Mkulima Hub survey.

Walks one respondent through the survey step by step using the same
:class:`SurveySession` a web form would use, then posts the assembled
record to the server.

Usage::

    # Against a running server
    mkulima-survey --base-url http://localhost:8080

    # Offline: load the YAML catalog and print the record instead of posting
    mkulima-survey --catalog catalog/questions.yaml --offline

    # Keep a resumable snapshot (answers survive a Ctrl-C)
    mkulima-survey --state ~/.mkulima_state.json

    # Also write a printable copy of the answers
    mkulima-survey --export results.md
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from mkulima_survey.catalog import QuestionCatalog
from mkulima_survey.client import SurveyClient
from mkulima_survey.errors import IncompleteSubmission, MissingRequired, PersistenceFailure, UnreachableCatalog
from mkulima_survey.export import ExportManager
from mkulima_survey.models.question import CheckboxQuestion, ChoiceQuestion, Question, ScaleQuestion
from mkulima_survey.models.session import QuestionsStep, SessionState
from mkulima_survey.session import SessionStatus, SurveySession
from mkulima_survey.validator import is_empty

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Answer prompts (one per question type)
# ---------------------------------------------------------------------------

class SurveyPrompter:
    """Asks for each visible question of a step and writes into the session."""

    def __init__(self, console: Console, session: SurveySession):
        self.console = console
        self.session = session

    def ask(self, question: Question) -> None:
        current = self.session.answers.get_answer(question.qid)
        marker = " [red]*[/]" if question.required and not question.label.endswith("*") else ""
        self.console.print(f"\n[bold]{question.label}[/]{marker}")

        if isinstance(question, CheckboxQuestion):
            self._ask_checkbox(question, current)
        elif isinstance(question, ChoiceQuestion):
            self._ask_choice(question, current)
        elif isinstance(question, ScaleQuestion):
            self._ask_scale(question, current)
        else:
            value = Prompt.ask("  >", default=current or "", console=self.console)
            self.session.set_answer(question.qid, value.strip())

    def _ask_choice(self, question: ChoiceQuestion, current: Any) -> None:
        for i, opt in enumerate(question.options, 1):
            mark = "[green]•[/]" if opt == current else " "
            self.console.print(f"  {mark} {i}. {opt}")
        default = str(question.options.index(current) + 1) if current in question.options else ""
        choices = [str(i) for i in range(1, len(question.options) + 1)]
        if not question.required:
            choices.append("")
        raw = Prompt.ask("  Choose", choices=choices, default=default, show_choices=False, console=self.console)
        self.session.set_answer(question.qid, question.options[int(raw) - 1] if raw else "")

    def _ask_checkbox(self, question: CheckboxQuestion, current: Any) -> None:
        self.console.print("  [dim]Enter numbers to toggle (e.g. 1,3); blank to continue[/]")
        while True:
            selected = self.session.answers.get_answer(question.qid) or []
            for i, opt in enumerate(question.options, 1):
                box = "[green]x[/]" if opt in selected else " "
                self.console.print(f"  [{box}] {i}. {opt}")
            raw = Prompt.ask("  Toggle", default="", show_default=False, console=self.console)
            if not raw.strip():
                return
            for token in raw.split(","):
                token = token.strip()
                if token.isdigit() and 1 <= int(token) <= len(question.options):
                    self.session.toggle_option(question.qid, question.options[int(token) - 1])
                else:
                    self.console.print(f"  [yellow]![/] Ignoring '{token}'")

    def _ask_scale(self, question: ScaleQuestion, current: Any) -> None:
        choices = [str(n) for n in range(question.min_value, question.max_value + 1)]
        if not question.required:
            choices.append("")
        default = str(current) if current is not None else ""
        raw = Prompt.ask(
            f"  Rate {question.min_value}-{question.max_value}",
            choices=choices, default=default, show_choices=False, console=self.console,
        )
        self.session.set_answer(question.qid, int(raw) if raw else None)


# ---------------------------------------------------------------------------
# State snapshot helpers
# ---------------------------------------------------------------------------

def load_state(path: Path | None) -> SessionState | None:
    if path is None or not path.exists():
        return None
    return SessionState.model_validate_json(path.read_text(encoding="utf-8"))


def save_state(path: Path | None, session: SurveySession) -> None:
    if path is None:
        return
    path.write_text(session.to_state().model_dump_json(indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Survey loop
# ---------------------------------------------------------------------------

def print_stepper(console: Console, step: QuestionsStep, session: SurveySession) -> None:
    table = Table(show_header=False, box=None, padding=(0, 1))
    cells = []
    for i, section in enumerate(session.sections, 1):
        style = "bold cyan" if i == step.step else ("green" if i < step.step else "dim")
        cells.append(f"[{style}]{i}. {section.title()}[/]")
    table.add_row(*cells)
    console.print()
    console.rule(f"[bold]Step {step.step} of {step.total}: {step.section_title}")
    console.print(table)


def run_session(console: Console, session: SurveySession, state_path: Path | None) -> bool:
    """Drive the session until its record is assembled.

    Returns False if the respondent quit early.
    """
    prompter = SurveyPrompter(console, session)
    while session.status == SessionStatus.IN_PROGRESS:
        step = session.current_step()
        print_stepper(console, step, session)
        for question in step.questions:
            if question.label in session.errors or is_empty(session.answers.get_answer(question.qid)):
                prompter.ask(question)
        save_state(state_path, session)

        action = Prompt.ask(
            "\nNext (n), back (p), edit step (e), jump (j), quit (q)",
            choices=["n", "p", "e", "j", "q"], default="n", console=console,
        )
        if action == "q":
            return False
        if action == "p":
            session.prev()
        elif action == "e":
            for question in session.current_questions():
                prompter.ask(question)
        elif action == "j":
            target = Prompt.ask("  Step", default=str(session.step), console=console)
            try:
                session.jump(int(target))
            except ValueError as exc:
                console.print(f"  [yellow]![/] {exc}")
        else:
            try:
                session.next()
            except MissingRequired as exc:
                for label, err in exc.errors.items():
                    console.print(f"  [red]{err}:[/] {label}")
            except IncompleteSubmission as exc:
                console.print(
                    f"  [red]Complete all required fields[/] "
                    f"(returning to '{exc.section}')"
                )
        save_state(state_path, session)
    return True


async def submit(console: Console, args: argparse.Namespace, session: SurveySession) -> bool:
    if args.offline:
        console.print_json(json.dumps(session.record.to_document()))
        session.mark_submitted(None)
        return True
    async with SurveyClient(args.base_url, timeout=args.timeout) as client:
        try:
            submission_id = await client.submit_session(session)
        except PersistenceFailure as exc:
            console.print(f"[red]Failed to submit survey. Please try again.[/] ({exc})")
            return False
    console.print(f"[green]Survey submitted successfully.[/] id={submission_id}")
    return True


async def load_catalog(args: argparse.Namespace) -> QuestionCatalog:
    if args.catalog or args.offline:
        return QuestionCatalog.from_yaml(args.catalog)
    async with SurveyClient(args.base_url, timeout=args.timeout) as client:
        return await client.fetch_catalog()


# ---------------------------------------------------------------------------
# CLI + async main
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fill in the Mkulima Hub survey from the terminal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--base-url",
        default="http://localhost:8080",
        help="Server base URL (default: http://localhost:8080)",
    )
    parser.add_argument(
        "--catalog",
        type=Path, default=None,
        help="Load questions from a local YAML file instead of the server",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Print the assembled record instead of posting it",
    )
    parser.add_argument(
        "--state",
        type=Path, default=None,
        help="Resumable snapshot file (read on start, written after each step)",
    )
    parser.add_argument(
        "--export",
        type=Path, default=None,
        help="Write a printable Markdown copy of the submission",
    )
    parser.add_argument(
        "--timeout",
        type=float, default=10.0,
        help="HTTP request timeout in seconds (default: 10)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count", default=0,
        help="Increase log verbosity",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    console = Console()

    try:
        catalog = await load_catalog(args)
    except (UnreachableCatalog, FileNotFoundError) as exc:
        console.print(f"[red]Failed to load questions.[/] {exc}")
        return 1

    session = SurveySession(catalog, state=load_state(args.state))
    if session.answers:
        console.print(f"[dim]Resuming at step {session.step} with {len(session.answers)} answers[/]")

    while True:
        if not run_session(console, session, args.state):
            console.print("[dim]Progress saved.[/]" if args.state else "[dim]Quit without submitting.[/]")
            return 1
        record = session.record
        if await submit(console, args, session):
            break
        # Back on the last step with answers intact
        console.print("[dim]Your answers are kept; choose next (n) to retry.[/]")

    if args.export is not None:
        args.export.write_text(ExportManager().render_submission(catalog, record), encoding="utf-8")
        console.print(f"[dim]Wrote {args.export}[/]")
    if args.state is not None and args.state.exists():
        args.state.unlink()
    return 0


def cli() -> None:
    """Console-script entry point: ``mkulima-survey``."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
