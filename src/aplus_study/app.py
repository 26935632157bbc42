"""Interactive CLI application."""
import logging
import random
import time

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt
from rich.table import Table

from aplus_study.content import Catalogue, load_catalogue
from aplus_study.dashboard import (
    calc_readiness, get_domain_scores, get_objective_breakdown, get_study_stats,
)
from aplus_study.db import init_db, DEFAULT_DB_PATH
from aplus_study.diagnostic import (
    build_diagnostic, finish_onboarding, needs_onboarding, skip_onboarding,
)
from aplus_study.exam import build_exam, submit_exam, time_limit_seconds
from aplus_study.flashcards import get_due_flashcards, record_flashcard_rating
from aplus_study.models import MatchPair, ReviewQuality
from aplus_study.quiz import get_quiz_questions, missed_question_ids, record_quiz
from aplus_study.scoring import (
    grade_matching, grade_multiple_choice, readiness_color, readiness_label,
)
from aplus_study.sync import SyncError, generate_sync_code, restore_sync_code

console = Console()

EXIT_WORDS = ("q", "menu")

RATINGS = {
    "1": ReviewQuality.AGAIN,
    "2": ReviewQuality.HARD,
    "3": ReviewQuality.GOOD,
    "4": ReviewQuality.EASY,
}


class SessionExitRequested(Exception):
    """Raised when the learner leaves a session from any prompt."""


def session_prompt(prompt: str, **kwargs) -> str:
    value = Prompt.ask(prompt, **kwargs)
    if value.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return value


def session_int_prompt(prompt: str, choices: list) -> int:
    while True:
        value = session_prompt(f"{prompt} [{'/'.join(choices)}, q=menu]").strip()
        if value in choices:
            return int(value)
        console.print(f"[red]Please choose one of: {', '.join(choices)}[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]CompTIA A+ Core 1 / Core 2[/bold]\n[dim]Offline Study Tool[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("flashcards", "Flashcard drill (due cards)"),
        ("quiz", "Practice quiz"),
        ("exam", "Timed practice exam"),
        ("dashboard", "Readiness score + progress"),
        ("notes", "Browse objectives and study notes"),
        ("glossary", "Search glossary terms"),
        ("sync", "Export or import a sync code"),
        ("diagnostic", "Retake the diagnostic quiz"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def choose_exam(catalogue: Catalogue) -> str:
    names = catalogue.exam_names()
    return Prompt.ask("Exam", choices=names, default=names[0])


def choose_domain(catalogue: Catalogue, exam: str) -> str | None:
    domains = catalogue.exam(exam).domains
    for d in domains:
        console.print(f"  [cyan]{d.id}[/cyan]) {d.name} ({d.weight}%)")
    choice = Prompt.ask("Domain (blank for all)", choices=[""] + [d.id for d in domains], default="", show_choices=False)
    return choice or None


def ask_question(question):
    """Prompt for one question and return its graded result."""
    console.print(f"[bold]{question.question}[/bold]\n")
    if question.question_type == "matching":
        rights = sorted({p.right for p in question.pairs})
        random.shuffle(rights)
        for i, right in enumerate(rights, 1):
            console.print(f"  [cyan]{i})[/cyan] {right}")
        choices = [str(i) for i in range(1, len(rights) + 1)]
        selected = set()
        for pair in question.pairs:
            pick = session_int_prompt(f"Match '{pair.left}'", choices=choices)
            selected.add(MatchPair(pair.left, rights[pick - 1]))
        return grade_matching(question, selected)

    keys = sorted(question.options)
    for key in keys:
        console.print(f"  [cyan]{key})[/cyan] {question.options[key]}")
    while True:
        answer = session_prompt("\nYour answer").strip().upper()
        if answer in keys:
            return grade_multiple_choice(question, answer)
        console.print(f"[red]Please choose one of: {', '.join(keys)}[/red]")


def show_feedback(question, result):
    if result.correct:
        console.print("[green]Correct![/green]")
    elif question.question_type == "matching":
        console.print(f"[yellow]{result.correct_pairs} of {result.total_pairs} pairs correct.[/yellow]")
        for pair in question.pairs:
            console.print(f"  [dim]{pair.left} → {pair.right}[/dim]")
    else:
        console.print(f"[red]Incorrect.[/red] Answer: [green]{question.correct}[/green]")
    if question.explanation:
        console.print(f"[dim]{question.explanation}[/dim]")
    console.print()


def run_flashcard_session(db_path: str, cards: list) -> int:
    """Drill ``cards``; returns how many were rated."""
    if not cards:
        console.print("[yellow]No flashcards due right now![/yellow]")
        return 0
    console.print(f"\n[bold]Flashcard Session[/bold] — {len(cards)} cards\n")
    reviewed = 0
    for i, card in enumerate(cards, 1):
        console.print(Panel(card.question, title=f"Card {i}/{len(cards)}", border_style="cyan"))
        session_prompt("[dim]Press Enter to reveal answer[/dim]", default="", show_default=False)
        console.print(Panel(card.answer, border_style="green"))
        if card.explanation:
            console.print(f"[dim]{card.explanation}[/dim]")
        rating = session_int_prompt("Rate yourself (1=again, 2=hard, 3=good, 4=easy)", choices=list(RATINGS))
        schedule = record_flashcard_rating(db_path, card, RATINGS[str(rating)])
        console.print(f"[dim]Next review in {schedule.interval} day(s)[/dim]\n")
        reviewed += 1
    return reviewed


def run_quiz_session(db_path: str, exam: str, questions: list, domain: str = None) -> list:
    """Ask ``questions`` and save the quiz; returns the question results."""
    if not questions:
        console.print("[yellow]No questions available![/yellow]")
        return []
    results = []
    console.print(f"\n[bold]Quiz[/bold] — {len(questions)} questions\n")
    try:
        for i, q in enumerate(questions, 1):
            console.print(f"[bold]Q{i}.[/bold]", end=" ")
            result = ask_question(q)
            show_feedback(q, result)
            results.append(result)
    finally:
        if results:
            quiz = record_quiz(db_path, exam, questions, results, domain=domain)
            console.print(
                f"[bold]Score: {quiz.correct_answers}/{quiz.total_questions} ({quiz.score}%)[/bold]\n"
            )
    return results


def cmd_flashcards(db_path: str, catalogue: Catalogue):
    console.print("\n[bold]Flashcard Drill[/bold]")
    exam = choose_exam(catalogue)
    domain = choose_domain(catalogue, exam)
    cards = get_due_flashcards(db_path, catalogue, exam=exam, domain=domain, limit=15)
    run_flashcard_session(db_path, cards)


def cmd_quiz(db_path: str, catalogue: Catalogue):
    console.print("\n[bold]Practice Quiz[/bold]")
    exam = choose_exam(catalogue)
    domain = choose_domain(catalogue, exam)
    count = IntPrompt.ask("Number of questions", default=10)
    questions = get_quiz_questions(catalogue, exam=exam, domain=domain, count=count)
    results = run_quiz_session(db_path, exam, questions, domain=domain)
    missed = set(missed_question_ids(results))
    if missed and Prompt.ask("Retry missed questions?", choices=["y", "n"], default="n") == "y":
        retry = [q for q in questions if q.id in missed]
        random.shuffle(retry)
        run_quiz_session(db_path, exam, retry, domain=domain)


def run_exam_session(db_path: str, exam, questions: list):
    """Ask ``questions`` against the clock and submit the exam.

    Unanswered questions score zero, whether time ran out or the learner
    left early. Leaving before answering anything discards the exam.
    """
    limit = time_limit_seconds(exam)
    console.print(
        f"{len(questions)} questions, {exam.time_minutes} minutes, "
        f"passing score {exam.passing_score}/{exam.max_score}\n"
        "[dim]Type 'q' to end the exam early and submit your answers.[/dim]\n"
    )
    started = time.monotonic()
    results = []
    try:
        for i, q in enumerate(questions, 1):
            remaining = limit - (time.monotonic() - started)
            if remaining <= 0:
                console.print("[red]Time is up![/red]")
                break
            if remaining <= 15 * 60:
                console.print(f"[yellow]{int(remaining // 60)} minutes remaining[/yellow]")
            console.print(f"[bold]Q{i}/{len(questions)}.[/bold]", end=" ")
            results.append(ask_question(q))
    except SessionExitRequested:
        if not results:
            console.print("[dim]Exam discarded.[/dim]")
            raise
        console.print("[yellow]Exam ended early.[/yellow]")
    answered = {r.question_id for r in results}
    for q in questions:
        if q.id not in answered:
            results.append(grade_matching(q, ()) if q.question_type == "matching" else grade_multiple_choice(q, ""))

    outcome = submit_exam(db_path, exam, questions, results, int(time.monotonic() - started))
    color = "green" if outcome.passed else "red"
    console.print(Panel(
        f"Score: [bold]{outcome.score}[/bold] / {exam.max_score}  "
        f"[{color}]{'PASS' if outcome.passed else 'FAIL'}[/{color}]\n"
        f"Correct: {outcome.correct_answers}/{outcome.total_questions}",
        title="Exam Result",
    ))
    table = Table(title="By Domain")
    table.add_column("Domain", style="cyan")
    table.add_column("Correct", justify="right")
    for domain_id, tally in sorted(outcome.domain_scores.items()):
        table.add_row(domain_id, f"{tally['correct']}/{tally['total']}")
    console.print(table)
    return outcome


def cmd_exam(db_path: str, catalogue: Catalogue):
    console.print("\n[bold]Practice Exam[/bold]")
    exam = catalogue.exam(choose_exam(catalogue))
    run_exam_session(db_path, exam, build_exam(catalogue, exam.name))


def cmd_dashboard(db_path: str, catalogue: Catalogue):
    stats = get_study_stats(db_path)
    console.print(Panel(
        f"[bold]Streak: {stats['current_streak']} day(s)[/bold] (longest {stats['longest_streak']})",
        title="A+ Readiness Dashboard", border_style="blue",
    ))

    for exam in catalogue.exam_names():
        score = calc_readiness(db_path, catalogue, exam)
        label = readiness_label(score)
        color = readiness_color(score)
        bar_filled = int(score / 5)
        bar_empty = 20 - bar_filled
        bar = f"[{color}]{'█' * bar_filled}{'░' * bar_empty}[/{color}]"
        console.print(f"\n  {exam} Readiness: [bold]{score}%[/bold] {bar} [{color}]{label}[/{color}]\n")

        table = Table(title=f"{exam} Domain Breakdown")
        table.add_column("Domain", style="cyan")
        table.add_column("Weight", justify="right")
        table.add_column("Score", justify="right")
        table.add_column("Status")
        for ds in get_domain_scores(db_path, catalogue, exam):
            sc_color = readiness_color(ds["score"])
            table.add_row(
                f"{ds['domain_id']} {ds['name']}",
                f"{ds['weight']}%",
                f"{ds['score']}%",
                f"[{sc_color}]{ds['label']}[/{sc_color}]",
            )
        console.print(table)

        mastered = sum(1 for o in get_objective_breakdown(db_path, catalogue, exam) if o["mastery"] == "mastered")
        total = sum(len(d.objectives) for d in catalogue.exam(exam).domains)
        console.print(f"  Objectives mastered: [bold]{mastered}/{total}[/bold]")

    console.print(f"\n  Quizzes: [bold]{stats['quizzes_taken']}[/bold]  |  "
                  f"Exams: [bold]{stats['exams_taken']}[/bold]  |  "
                  f"Flashcards: [bold]{stats['flashcards_reviewed']}[/bold]  |  "
                  f"Due: [bold]{stats['cards_due']}[/bold]  |  "
                  f"Avg Quiz: [bold]{stats['avg_quiz_score']}%[/bold]")


def cmd_notes(catalogue: Catalogue):
    exam = choose_exam(catalogue)
    domains = catalogue.exam(exam).domains
    for d in domains:
        console.print(f"  [cyan]{d.id}[/cyan]) {d.name}")
    domain_id = Prompt.ask("Domain", choices=[d.id for d in domains], show_choices=False)
    domain = next(d for d in domains if d.id == domain_id)
    for o in domain.objectives:
        console.print(f"  [cyan]{o.id}[/cyan]) {o.title}")
    objective_id = Prompt.ask("Objective", choices=[o.id for o in domain.objectives], show_choices=False)

    objective = catalogue.objective(exam, objective_id)
    lines = [objective.study_notes or "[dim]No study notes for this objective yet.[/dim]"]
    if objective.subtopics:
        lines += ["", "[bold]Subtopics[/bold]"] + [f"  • {s}" for s in objective.subtopics]
    console.print(Panel(
        "\n".join(lines),
        title=f"{exam} {objective.id}: {objective.title}", border_style="cyan",
    ))


def cmd_glossary(catalogue: Catalogue):
    text = Prompt.ask("Search", default="")
    terms = catalogue.search_glossary(text)
    if not terms:
        console.print("[yellow]No matching terms.[/yellow]")
        return
    table = Table(title="Glossary")
    table.add_column("Term", style="cyan")
    table.add_column("Full Name")
    table.add_column("Definition")
    for t in terms:
        table.add_row(t.term, t.full_name, t.definition)
    console.print(table)


def cmd_sync(db_path: str):
    mode = Prompt.ask("Sync", choices=["export", "import"], default="export")
    if mode == "export":
        console.print(Panel(generate_sync_code(db_path), title="Sync Code", border_style="green"))
        console.print("[dim]Paste this code into 'sync → import' on another device.[/dim]")
        return
    code = Prompt.ask("Paste sync code")
    try:
        keys = restore_sync_code(db_path, code)
    except SyncError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Restored: {', '.join(keys)}[/green]")


def cmd_diagnostic(db_path: str, catalogue: Catalogue):
    console.print(Panel(
        "A short diagnostic quiz across every exam domain seeds your progress.\n"
        "[dim]Type 'q' at any prompt to skip.[/dim]",
        title="Diagnostic",
    ))
    questions = build_diagnostic(catalogue)
    answers = []
    try:
        for i, q in enumerate(questions, 1):
            console.print(f"[bold]Q{i}/{len(questions)}[/bold] [dim]{q.exam} {q.domain}[/dim]")
            result = ask_question(q)
            show_feedback(q, result)
            answers.append((q, result.correct))
    except SessionExitRequested:
        if not answers:
            skip_onboarding(db_path)
            console.print("[dim]Diagnostic skipped.[/dim]")
            return
    seeded = finish_onboarding(db_path, answers)
    console.print(f"[green]Diagnostic complete! Seeded {len(seeded)} objective(s).[/green]")


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    catalogue = load_catalogue()

    show_welcome()
    if needs_onboarding(db_path):
        cmd_diagnostic(db_path, catalogue)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="flashcards").strip().lower()
        try:
            if choice == "flashcards":
                cmd_flashcards(db_path, catalogue)
            elif choice == "quiz":
                cmd_quiz(db_path, catalogue)
            elif choice == "exam":
                cmd_exam(db_path, catalogue)
            elif choice == "dashboard":
                cmd_dashboard(db_path, catalogue)
            elif choice == "notes":
                cmd_notes(catalogue)
            elif choice == "glossary":
                cmd_glossary(catalogue)
            elif choice == "sync":
                cmd_sync(db_path)
            elif choice == "diagnostic":
                cmd_diagnostic(db_path, catalogue)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except SessionExitRequested:
            console.print("[dim]Back to menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
