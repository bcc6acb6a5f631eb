import logging
from typing import Optional
from typer import Argument, Exit, Option, Typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from zastepy.adapters.memory.change_notifier import InMemoryChangeNotifier
from zastepy.adapters.memory.patrol_repo import InMemoryPatrolRepository
from zastepy.adapters.sql.patrol_repo import SqlPatrolRepository
from zastepy.adapters.system.id_provider_uuid import UuidIdProvider
from zastepy.adapters.system.password_auth import PasswordAuthGate
from zastepy.api.colors import LevelColor
from zastepy.domain.enums import Derivation
from zastepy.domain.errors import AccessDeniedError, DomainError, MemberNotFoundError, PatrolValidationError
from zastepy.domain.patrol import Level, MemberId, Patrol, PatrolId
from zastepy.domain.progress import incremental_progress
from zastepy.domain.summary import RankedMember, summarize_level, summarize_patrol
from zastepy.services.patrol_service import PatrolService


### COMMENTS
# ==========================================================
# CLI (Typer + Rich) — interfejs gry zastępów.
# ==========================================================
# Rola:
# - Mapuje komendy na metody PatrolService.
# - Wyświetla poziomy, postęp przyrostowy zadań i tablice wyników.
# - Łapie DomainError i drukuje przyjazne komunikaty.
#
# Zasady:
# - Zero logiki gry — deleguj do PatrolService i funkcji domeny.
# - Jednorazowy bootstrap zależności (repo + auth + notifier + service) w callbacku.
# - Komendy zmieniające stan wymagają hasła zastępowego (--password).


app = Typer(help="Skautowa gra — postęp zastępów")
console = Console()

service: PatrolService | None = None  # ustawimy w callbacku


def build_service(db: Optional[str]) -> PatrolService:
    """Tworzy serwis na bazie wybranego adaptera.
    - Brak bazy -> InMemory
    - Podana ścieżka / URL -> SQL (trwałość)
    """
    notifier = InMemoryChangeNotifier()
    if db:
        repo = SqlPatrolRepository(db, notifier=notifier)
    else:
        repo = InMemoryPatrolRepository(notifier=notifier)
    return PatrolService(repo, PasswordAuthGate(repo), UuidIdProvider(), notifier)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def main(
    db: Optional[str] = Option(
        None,
        "--db",
        envvar="ZASTEPY_DB",
        help="Ścieżka do pliku SQLite lub URL SQLAlchemy (włącza tryb trwały)",
    ),
    verbose: bool = Option(False, "--verbose", "-v", help="Logi diagnostyczne"),
) -> None:
    """Bootstrap zależności na starcie procesu CLI."""
    global service
    setup_logging(verbose)
    try:
        service = build_service(db)
    except DomainError as e:
        error_panel(e, "Błąd magazynu danych")
        raise Exit(1)


def short_id(member_id: str, n: int = 8) -> str:
    """Zwraca skróconą wersję ID do wyświetlenia (np. pierwsze 8 znaków)."""
    return member_id[:n]


def error_panel(e: Exception, title: str = "Błąd domenowy", hint: str | None = None) -> None:
    body = f"❌ {escape(str(e))}" + (f"\n[dim]{hint}[/]" if hint else "")
    console.print(Panel.fit(body, title=title, border_style="red"))


def level_status(level: Level) -> str:
    """Zwraca status poziomu w Rich-markup z kolorem."""
    if level.is_completed:
        return f"{LevelColor.DONE}★ DONE!{LevelColor.RESET}"
    if level.is_unlocked:
        return f"{LevelColor.UNLOCKED}W toku{LevelColor.RESET}"
    return f"{LevelColor.LOCKED}🔒 Zablokowany{LevelColor.RESET}"


def level_label(current_level: int) -> str:
    return "BRAK POZIOMU" if current_level == 0 else f"POZIOM {current_level}"


def render_patrol(patrol: Patrol) -> None:
    """Panel zastępu + tabela dla każdego poziomu z postępem przyrostowym zadań."""
    summary = summarize_patrol(patrol)
    working_on = f"Poziom {summary.working_on}" if summary.working_on else "wszystko zdobyte"
    console.print(Panel.fit(
        f"[bold]{escape(patrol.name.upper())}[/bold]  [{patrol.color}]■[/]\n"
        f"{level_label(patrol.current_level)} • {summary.completed_levels}/{summary.total_levels} POZIOMÓW OK\n"
        f"[dim]Pracujemy nad:[/dim] {working_on} • "
        f"[dim]Członkowie:[/dim] {len(patrol.members)} • "
        f"[dim]Zadania członków:[/dim] {summary.member_tasks}",
        title=escape(patrol.patrol_id),
        border_style="cyan",
    ))

    for index, level in enumerate(patrol.levels):
        level_summary = summarize_level(level)
        table = Table(
            title=f"LVL {level.level} · {level.name} · {level_status(level)}",
            caption=f"{level_summary.completed_tasks}/{level_summary.total_tasks} zadań ({level_summary.percent:.0f}%)",
            show_lines=False,
            header_style="bold",
        )
        table.add_column("Klucz", no_wrap=True, style="cyan")
        table.add_column("Zadanie")
        table.add_column("Postęp", no_wrap=True, justify="right")
        table.add_column("", no_wrap=True)

        for task in level.tasks:
            progress = incremental_progress(task, patrol.levels, index)
            table.add_row(
                task.task_id,
                task.name,
                f"{progress.current}/{progress.target}",
                "[green]✔[/]" if task.completed else "",
            )
        console.print(table)


def render_ranking(ranked: list[RankedMember], title: str, with_patrol: bool = False) -> None:
    table = Table(title=title, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", no_wrap=True, style="cyan")
    table.add_column("Imię")
    if with_patrol:
        table.add_column("Zastęp")
    table.add_column("ST", justify="right")
    table.add_column("FN", justify="right")
    table.add_column("Łącznie", justify="right", style="green")

    medals = {1: "🥇", 2: "🥈", 3: "🥉"}
    for place, r in enumerate(ranked, start=1):
        row = [medals.get(place, f"{place}."), escape(short_id(r.member.member_id)), escape(r.member.name)]
        if with_patrol:
            row.append(f"[{r.patrol_color}]{escape(r.patrol_name)}[/]")
        row += [str(r.member.tasks_stopien), str(r.member.tasks_funkcja), str(r.total)]
        table.add_row(*row)
    console.print(table)


def login(patrol_id: str, password: Optional[str]) -> None:
    """Loguje zastępowego albo kończy komendę z komunikatem."""
    if not password or not service.sign_in(PatrolId(patrol_id), password):
        console.print(Panel.fit(
            "❌ BŁĘDNE HASŁO!\n[dim]Podaj hasło zastępowego: --password lub ZASTEPY_PASSWORD[/]",
            title="Brak dostępu",
            border_style="red",
        ))
        raise Exit(1)


def report_sync() -> None:
    """Po nieudanym zapisie (stan przeładowany z bazy) drukuje panel i kończy komendę kodem 1."""
    if service.last_error:
        console.print(Panel.fit(
            f"⚠️ Zapis nie powiódł się, stan przeładowano z bazy.\n[dim]{escape(service.last_error)}[/]",
            title="Synchronizacja",
            border_style="yellow",
        ))
        raise Exit(1)


PASSWORD = Option(None, "--password", "-p", envvar="ZASTEPY_PASSWORD", help="Hasło zastępowego")


@app.command("add-patrol")
def add_patrol(
    patrol_id: str,
    name: str,
    color: str = Option("#4ecdc4", "--color", "-c"),
    password: str = Option(..., "--password", "-p", envvar="ZASTEPY_PASSWORD", help="Hasło zastępowego"),
) -> None:
    """Zakłada nowy zastęp z hasłem zastępowego."""
    try:
        patrol = service.add_patrol(patrol_id, name, color, password)
        console.print(Panel.fit(
            f"✅ Dodano zastęp\n[cyan]ID:[/cyan] {escape(patrol.patrol_id)}\n[dim]Nazwa:[/dim] {escape(patrol.name)}",
            title="Sukces",
            border_style="green",
        ))
    except PatrolValidationError as e:
        error_panel(e, "Błąd walidacji", "Użyj np.: zastepy add-patrol wilki 'Wilki' -p haslo")
        raise Exit(1)
    except DomainError as e:
        error_panel(e)
        raise Exit(1)


@app.command("list")
def list_cmd() -> None:
    """Statystyki ogólne i porównanie zastępów."""
    summaries = service.summaries()
    table = Table(show_lines=True, header_style="bold")
    table.add_column("ID", no_wrap=True, style="cyan")
    table.add_column("Zastęp")
    table.add_column("Poziom", no_wrap=True)
    table.add_column("Poziomy OK", justify="right")
    table.add_column("Zadań zaliczonych", justify="right", style="green")
    table.add_column("Zbiórek", justify="right", style="yellow")

    for s in summaries:
        table.add_row(
            escape(s.patrol_id),
            escape(s.name),
            level_label(s.current_level),
            f"{s.completed_levels}/{s.total_levels}",
            str(s.member_tasks),
            str(s.meetings),
        )
    console.print(table)
    console.print(f"[dim]Razem zastępów: {len(summaries)}[/]")


@app.command("show")
def show(patrol_id: str) -> None:
    """Pokazuje poziomy zastępu z postępem zadań."""
    try:
        render_patrol(service.get_patrol(PatrolId(patrol_id)))
    except DomainError as e:
        error_panel(e, "Nie znaleziono", "Użyj 'zastepy list', żeby znaleźć poprawne ID")
        raise Exit(1)


@app.command("board")
def board(patrol_id: str) -> None:
    """Tablica wyników członków zastępu."""
    try:
        patrol = service.get_patrol(PatrolId(patrol_id))
        render_ranking(service.leaderboard(patrol.patrol_id), f"TABLICA WYNIKÓW · {escape(patrol.name)}")
    except DomainError as e:
        error_panel(e, "Nie znaleziono", "Użyj 'zastepy list', żeby znaleźć poprawne ID")
        raise Exit(1)


@app.command("top")
def top(limit: int = Option(5, "--limit", "-n", min=1)) -> None:
    """Najlepsi członkowie ze wszystkich zastępów."""
    render_ranking(service.top_members(limit), f"Top {limit} członków (wszystkie zastępy)", with_patrol=True)


@app.command("task")
def task(
    patrol_id: str,
    level: int = Argument(..., min=1, help="Numer poziomu (od 1)"),
    task_key: str = Argument(..., help="Klucz zadania, np. l1-t1"),
    value: int = Argument(..., help="Nowa wartość licznika"),
    password: Optional[str] = PASSWORD,
) -> None:
    """
    Ustawia licznik zadania.

    Flow:
    - login(patrol_id, password)
    - service.update_task(patrol_id, level - 1, task_key, value)
    - Sukces: tabela poziomów zastępu.
    - Nieudany zapis: tabela stanu z bazy + panel synchronizacji, kod 1.
    """
    login(patrol_id, password)
    try:
        patrol = service.update_task(PatrolId(patrol_id), level - 1, task_key, value)
        render_patrol(patrol)
        report_sync()
    except PatrolValidationError as e:
        error_panel(e, "Błąd walidacji")
        raise Exit(1)
    except AccessDeniedError as e:
        error_panel(e, "Brak dostępu")
        raise Exit(1)
    except DomainError as e:
        error_panel(e)
        raise Exit(1)


@app.command("member-add")
def member_add(patrol_id: str, name: str, password: Optional[str] = PASSWORD) -> None:
    """Dodaje członka zastępu."""
    login(patrol_id, password)
    try:
        known = {m.member_id for m in service.get_patrol(PatrolId(patrol_id)).members}
        patrol = service.add_member(PatrolId(patrol_id), name)
        report_sync()
        member = next(m for m in patrol.members if m.member_id not in known)
        console.print(Panel.fit(
            f"✅ Dodano członka\n[cyan]ID:[/cyan] {escape(member.member_id)}\n[dim]Imię:[/dim] {escape(member.name)}",
            title="Sukces",
            border_style="green",
        ))
    except PatrolValidationError as e:
        error_panel(e, "Błąd walidacji", "Użyj np.: zastepy member-add wilki 'Jan' -p haslo")
        raise Exit(1)
    except DomainError as e:
        error_panel(e)
        raise Exit(1)


@app.command("member-rm")
def member_rm(patrol_id: str, member_id: str, password: Optional[str] = PASSWORD) -> None:
    """Usuwa członka zastępu."""
    login(patrol_id, password)
    try:
        patrol = service.remove_member(PatrolId(patrol_id), MemberId(member_id))
        report_sync()
        console.print(Panel.fit(
            f"🟡 Członek usunięty\nID: {escape(short_id(member_id))}\n{level_label(patrol.current_level)}",
            title="Usunięto",
            border_style="yellow",
        ))
    except DomainError as e:
        error_panel(e, hint="Użyj 'zastepy board <zastęp>', żeby znaleźć poprawne ID")
        raise Exit(1)


@app.command("member-set")
def member_set(
    patrol_id: str,
    member_id: str,
    stopien: int = Option(..., "--stopien", "-s", help="Zadania na stopień"),
    funkcja: int = Option(..., "--funkcja", "-f", help="Zadania z funkcji"),
    password: Optional[str] = PASSWORD,
) -> None:
    """Ustawia liczniki zadań członka (wartości ujemne → 0)."""
    login(patrol_id, password)
    try:
        patrol = service.update_member_tasks(PatrolId(patrol_id), MemberId(member_id), stopien, funkcja)
        report_sync()
        member = patrol.find_member(MemberId(member_id))
        if member is None:
            raise MemberNotFoundError(member_id)
        console.print(Panel.fit(
            f"✅ {escape(member.name)}: ST {member.tasks_stopien} • FN {member.tasks_funkcja}\n"
            f"{level_label(patrol.current_level)}",
            title="Sukces",
            border_style="green",
        ))
    except DomainError as e:
        error_panel(e, hint="Użyj 'zastepy board <zastęp>', żeby znaleźć poprawne ID")
        raise Exit(1)


@app.command("demo")
def demo() -> None:
    """
    Pokazowy przebieg gry w jednym procesie (InMemory).

    - Zakłada 2 zastępy.
    - Dodaje członków i ich zadania.
    - Zalicza zadania poziomu 1 jednego zastępu.
    - Usuwa członka i pokazuje, że poziom wraca do stanu niezaliczonego.
    """
    svc = build_service(None)
    console.print(Panel.fit("🚀 Start demonstracji", border_style="cyan"))

    wilki = svc.add_patrol("wilki", "Wilki", "#ff6b6b", "auuu")
    svc.add_patrol("flamingi", "Flamingi", "#ff9ff3", "rozowe")
    svc.sign_in(wilki.patrol_id, "auuu")

    # 1️⃣ Członkowie i ich zadania
    for name, stopien, funkcja in [("Ala", 8, 2), ("Bartek", 5, 1), ("Celina", 3, 1)]:
        patrol = svc.add_member(wilki.patrol_id, name)
        member = patrol.members[-1]
        svc.update_member_tasks(wilki.patrol_id, member.member_id, stopien, funkcja)

    # 2️⃣ Zadania poziomu 1
    for task in svc.get_patrol(wilki.patrol_id).levels[0].tasks:
        if task.derivation == Derivation.DIRECT:
            svc.update_task(wilki.patrol_id, 0, task.task_id, task.target)
    svc.update_task(wilki.patrol_id, 1, "l2-t1", 6)

    patrol = svc.get_patrol(wilki.patrol_id)
    console.print(Panel.fit(f"✔️ Wilki: {level_label(patrol.current_level)}", border_style="green"))
    render_patrol(patrol)
    render_ranking(svc.leaderboard(wilki.patrol_id), "TABLICA WYNIKÓW · Wilki")

    # 3️⃣ Usunięcie członka cofa zaliczenie poziomu 1
    ala = svc.get_patrol(wilki.patrol_id).members[0]
    patrol = svc.remove_member(wilki.patrol_id, ala.member_id)
    console.print(Panel.fit(
        f"🗑️ Usunięto: {escape(ala.name)} → {level_label(patrol.current_level)}",
        border_style="red",
    ))

    summaries = svc.summaries()
    console.print("\n📋 Zastępy: " + ", ".join(f"{escape(s.name)} ({level_label(s.current_level)})" for s in summaries))
    console.print(Panel.fit("🏁 Demo zakończone", border_style="cyan"))


if __name__ == "__main__":
    app()
