"""
adapters.cli.main - CLI adapter for the food-share allocation core.

Uses the same ServiceFactory and AllocationWorkflow any other transport
layer would, so allocation, review and listing behave identically.

Commands
--------
  act-as          Store the identity (user id + role) to act as
  whoami          Show the stored identity
  logout          Clear the stored identity
  init-db         Create or migrate the database schema
  add-user        Register a platform user (donor, recipient, food-bank)
  add-restaurant  Register a restaurant managed by a donor
  donate          Offer a food lot from your restaurant        (DONOR)
  donations       List open donations, optionally closest first
  claim           Claim a donation                             (RECIPIENT)
  review          Accept or reject a pending match             (FOOD_BANK)
  complete        Mark an accepted match handed over           (FOOD_BANK)
  pending         List matches awaiting review
  accepted        List accepted matches with recipient contacts
  history         Show a match's audit log
  search          Search restaurants, recipients and food-banks
  nearby          Nearest records of one reference pool

Usage
-----
  python src/adapters/cli/main.py act-as fb-1 --role FOOD_BANK
  python src/adapters/cli/main.py donations --lat 37.5 --lng 127.0
  python src/adapters/cli/main.py review 3 --notes "pickup at 5pm"
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional

# ── Ensure src/ is on the path ──
_SRC = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(_SRC))

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from adapters.cli.session import Session, clear_session, load_session, save_session
from application.context import AuthContext
from application.dto import MatchSummary
from domain.entities import Restaurant, User
from domain.exceptions import DomainError, InvalidArgumentError, NotFoundError
from domain.models import (
    DonationWithRestaurant,
    GeoPoint,
    MatchDetail,
    ReferencePool,
    ReferenceRecord,
    ReviewDecision,
    Role,
)
from factory import ServiceFactory
from infrastructure.config import Settings

__version__ = "1.0.0"

console = Console()
app = typer.Typer(
    help="Food-share allocation CLI",
    add_completion=False,
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _require_session() -> Session:
    """Return the stored identity or exit with a user-friendly error."""
    session = load_session()
    if session is None:
        console.print(
            "[bold red]No identity set.[/bold red] "
            "Run [bold]act-as[/bold] first."
        )
        raise typer.Exit(code=1)
    return session


def _ctx(session: Session) -> AuthContext:
    return AuthContext(user_id=session.user_id, role=session.role_enum)


async def _make_factory() -> ServiceFactory:
    """Create and initialise a ServiceFactory from the environment."""
    config = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    factory = ServiceFactory(config)
    await factory.initialize()
    return factory


def _execute(run: Callable[[], Awaitable[None]]) -> None:
    """Run a command body; domain errors become a red line and exit code 1."""
    try:
        asyncio.run(run())
    except DomainError as exc:
        console.print(f"[bold red]{escape('[' + exc.kind + ']')}[/bold red] {escape(exc.message)}")
        raise typer.Exit(code=1)


def _origin(lat: Optional[float], lng: Optional[float]) -> Optional[GeoPoint]:
    if lat is None and lng is None:
        return None
    if lat is None or lng is None:
        console.print("[bold red]--lat and --lng must be given together.[/bold red]")
        raise typer.Exit(code=1)
    return GeoPoint.validated(lat, lng)


def _print_summary(title: str, summary: MatchSummary, style: str = "green") -> None:
    t = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    t.add_column("Field", style="bold")
    t.add_column("Value")
    t.add_row("Match", str(summary.match_id))
    t.add_row("Donation", str(summary.donation_id))
    t.add_row("Recipient", summary.recipient_id)
    t.add_row("Food-bank", summary.food_bank_id or "[dim]—[/dim]")
    t.add_row("Status", summary.status.value)
    console.print(Panel(t, title=title, border_style=style))


def _donation_table(rows: list[DonationWithRestaurant]) -> Table:
    t = Table(box=box.SIMPLE, padding=(0, 1))
    for col in ("ID", "Item", "Category", "Qty", "Expires", "Restaurant", "Address", "km"):
        t.add_column(col)
    for r in rows:
        t.add_row(
            str(r.donation_id),
            r.item_name,
            r.category,
            str(r.quantity),
            r.expiration_date.isoformat(),
            r.restaurant_name,
            r.restaurant_address,
            "" if r.distance_km is None else f"{r.distance_km:.3f}",
        )
    return t


def _match_table(rows: list[MatchDetail], with_contact: bool = False) -> Table:
    t = Table(box=box.SIMPLE, padding=(0, 1))
    cols = ["Match", "Donation", "Item", "Qty", "Expires", "Restaurant", "Recipient", "Food-bank"]
    if with_contact:
        cols += ["Phone", "Contact address"]
    for col in cols:
        t.add_column(col)
    for r in rows:
        cells = [
            str(r.match_id),
            str(r.donation_id),
            r.item_name,
            str(r.quantity),
            r.expiration_date.isoformat(),
            r.restaurant_name,
            r.recipient_name or r.recipient_id,
            r.food_bank_id or "",
        ]
        if with_contact:
            cells += [r.recipient_phone, r.recipient_contact_address]
        t.add_row(*cells)
    return t


def _record_table(title: str, records: list[ReferenceRecord]) -> Table:
    t = Table(box=box.SIMPLE, title=title, padding=(0, 1))
    for col in ("ID", "Name", "Address", "Phone", "Lat", "Lng"):
        t.add_column(col)
    for r in records:
        t.add_row(
            r.id, r.name, r.address, r.phone_number,
            "" if r.latitude is None else f"{r.latitude:.5f}",
            "" if r.longitude is None else f"{r.longitude:.5f}",
        )
    return t


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"food-share v{__version__}")
        raise typer.Exit()


# ---------------------------------------------------------------------------
# Commands: Identity
# ---------------------------------------------------------------------------

@app.command("act-as")
def act_as(
    user_id: str = typer.Argument(..., help="Opaque user id."),
    role: Role = typer.Option(..., "--role", "-r", case_sensitive=False, help="Caller role."),
) -> None:
    """Store the identity subsequent commands act as."""
    save_session(Session(user_id=user_id, role=role.value))
    console.print(f"Acting as [bold]{user_id}[/bold] ({role.value})")


@app.command()
def whoami() -> None:
    """Show the stored identity."""
    session = load_session()
    if session is None:
        console.print("[dim]No identity set.[/dim]")
        return
    console.print(f"Acting as [bold]{session.user_id}[/bold] ({session.role})")


@app.command()
def logout() -> None:
    """Clear the stored identity."""
    if load_session() is None:
        console.print("[dim]No identity set.[/dim]")
        return
    clear_session()
    console.print("[green]Identity cleared.[/green]")


# ---------------------------------------------------------------------------
# Commands: Setup
# ---------------------------------------------------------------------------

@app.command("init-db")
def init_db() -> None:
    """Create or migrate the database schema."""
    async def _run() -> None:
        factory = await _make_factory()
        console.print(Panel(
            f"[bold green]Database ready[/bold green] at {factory.connection.db_path}",
            border_style="green",
        ))

    _execute(_run)


@app.command("add-user")
def add_user(
    user_id: str = typer.Argument(..., help="Opaque user id."),
    role: Role = typer.Option(..., "--role", "-r", case_sensitive=False),
    name: str = typer.Option("", "--name"),
    address: str = typer.Option("", "--address"),
    phone: str = typer.Option("", "--phone"),
    lat: Optional[float] = typer.Option(None, "--lat"),
    lng: Optional[float] = typer.Option(None, "--lng"),
) -> None:
    """Register (or update) a platform user."""
    async def _run() -> None:
        origin = _origin(lat, lng)
        factory = await _make_factory()
        repo = factory.create_user_repository()
        await repo.save(User(
            id=user_id,
            name=name,
            role=role,
            address=address,
            phone_number=phone,
            latitude=origin.latitude if origin else None,
            longitude=origin.longitude if origin else None,
        ))
        console.print(f"[green]Saved user[/green] [bold]{user_id}[/bold] ({role.value})")

    _execute(_run)


@app.command("add-restaurant")
def add_restaurant(
    manager_id: str = typer.Option(..., "--manager", help="Donor user id."),
    name: str = typer.Option(..., "--name"),
    address: str = typer.Option("", "--address"),
    lat: Optional[float] = typer.Option(None, "--lat"),
    lng: Optional[float] = typer.Option(None, "--lng"),
) -> None:
    """Register a restaurant managed by a donor."""
    async def _run() -> None:
        origin = _origin(lat, lng)
        factory = await _make_factory()
        manager = await factory.create_user_repository().get_by_id(manager_id)
        if manager is None:
            raise NotFoundError(f"User {manager_id} not found.")
        if manager.role is not Role.DONOR:
            raise InvalidArgumentError(
                f"User {manager_id} is {manager.role.value}; restaurants are managed by donors."
            )
        repo = factory.create_restaurant_repository()
        restaurant_id = await repo.save(Restaurant(
            manager_id=manager_id,
            name=name,
            address=address,
            latitude=origin.latitude if origin else None,
            longitude=origin.longitude if origin else None,
        ))
        console.print(f"[green]Saved restaurant[/green] #{restaurant_id} [bold]{name}[/bold]")

    _execute(_run)


# ---------------------------------------------------------------------------
# Commands: Donations
# ---------------------------------------------------------------------------

@app.command()
def donate(
    item_name: str = typer.Argument(..., help="What is offered."),
    quantity: int = typer.Option(..., "--quantity", "-q"),
    expires: str = typer.Option(..., "--expires", "-e", help="Expiration date, YYYY-MM-DD."),
    category: str = typer.Option("", "--category", "-c"),
) -> None:
    """Offer a food lot from your restaurant (DONOR)."""
    session = _require_session()

    async def _run() -> None:
        factory = await _make_factory()
        workflow = factory.create_allocation_workflow()
        donation = await workflow.register_donation(
            _ctx(session), item_name, category, quantity, expires,
        )
        console.print(Panel(
            f"[bold green]Donation #{donation.id} offered[/bold green]\n"
            f"{donation.quantity} x {donation.item_name}, "
            f"expires {donation.expiration_date.isoformat()}",
            border_style="green",
        ))

    _execute(_run)


@app.command()
def donations(
    lat: Optional[float] = typer.Option(None, "--lat", help="Rank from this latitude."),
    lng: Optional[float] = typer.Option(None, "--lng", help="Rank from this longitude."),
) -> None:
    """List open donations, closest first when a location is given."""
    session = _require_session()

    async def _run() -> None:
        origin = _origin(lat, lng)
        factory = await _make_factory()
        workflow = factory.create_allocation_workflow()
        rows = await workflow.list_available_donations(_ctx(session), origin)
        if not rows:
            console.print("[dim]No open donations.[/dim]")
            return
        console.print(_donation_table(rows))

    _execute(_run)


# ---------------------------------------------------------------------------
# Commands: Matches
# ---------------------------------------------------------------------------

@app.command()
def claim(donation_id: int = typer.Argument(...)) -> None:
    """Claim a donation; it is routed to the nearest food-bank (RECIPIENT)."""
    session = _require_session()

    async def _run() -> None:
        factory = await _make_factory()
        workflow = factory.create_allocation_workflow()
        summary = await workflow.accept_donation(_ctx(session), donation_id)
        _print_summary("Donation claimed", summary)

    _execute(_run)


@app.command()
def review(
    match_id: int = typer.Argument(...),
    reject: bool = typer.Option(False, "--reject", help="Reject instead of accept."),
    notes: str = typer.Option("", "--notes", "-n"),
) -> None:
    """Accept (default) or reject a pending match (FOOD_BANK)."""
    session = _require_session()
    decision = ReviewDecision.REJECT if reject else ReviewDecision.ACCEPT

    async def _run() -> None:
        factory = await _make_factory()
        workflow = factory.create_allocation_workflow()
        summary = await workflow.review_match(_ctx(session), match_id, decision, notes)
        _print_summary(
            f"Match {decision.value.lower()}ed", summary,
            style="yellow" if reject else "green",
        )

    _execute(_run)


@app.command()
def complete(
    match_id: int = typer.Argument(...),
    notes: str = typer.Option("", "--notes", "-n"),
) -> None:
    """Mark an accepted match handed over (FOOD_BANK)."""
    session = _require_session()

    async def _run() -> None:
        factory = await _make_factory()
        workflow = factory.create_allocation_workflow()
        summary = await workflow.complete_match(_ctx(session), match_id, notes)
        _print_summary("Match completed", summary)

    _execute(_run)


@app.command()
def pending() -> None:
    """List matches awaiting food-bank review."""
    session = _require_session()

    async def _run() -> None:
        factory = await _make_factory()
        workflow = factory.create_allocation_workflow()
        rows = await workflow.list_pending_matches(_ctx(session))
        if not rows:
            console.print("[dim]No pending matches.[/dim]")
            return
        console.print(_match_table(rows))

    _execute(_run)


@app.command()
def accepted(
    food_bank_id: Optional[str] = typer.Option(
        None, "--food-bank", help="Defaults to the current identity.",
    ),
) -> None:
    """List accepted matches with recipient contact details."""
    session = _require_session()

    async def _run() -> None:
        factory = await _make_factory()
        workflow = factory.create_allocation_workflow()
        rows = await workflow.list_accepted_matches(_ctx(session), food_bank_id)
        if not rows:
            console.print("[dim]No accepted matches.[/dim]")
            return
        console.print(_match_table(rows, with_contact=True))

    _execute(_run)


@app.command()
def history(match_id: int = typer.Argument(...)) -> None:
    """Show every status change recorded for a match."""
    session = _require_session()

    async def _run() -> None:
        factory = await _make_factory()
        workflow = factory.create_allocation_workflow()
        logs = await workflow.match_history(_ctx(session), match_id)
        t = Table(box=box.SIMPLE, padding=(0, 1))
        for col in ("When", "Actor", "From", "To", "Notes"):
            t.add_column(col)
        for log in logs:
            t.add_row(
                log.created_at,
                log.actor_id,
                log.previous_status.value if log.previous_status else "—",
                log.new_status.value,
                log.notes,
            )
        console.print(Panel(t, title=f"Match {match_id}", border_style="blue"))

    _execute(_run)


# ---------------------------------------------------------------------------
# Commands: Reference data
# ---------------------------------------------------------------------------

@app.command()
def search(term: str = typer.Argument(..., help="Case-insensitive substring.")) -> None:
    """Search restaurants, recipients and food-banks at once."""
    async def _run() -> None:
        factory = await _make_factory()
        service = factory.create_reference_data_service()
        result = await service.search_all(term)
        console.print(_record_table("Restaurants", result.restaurants))
        console.print(_record_table("Recipients", result.recipients))
        console.print(_record_table("Food-banks", result.foodbanks))
        console.print(f"[bold]{result.counts['total']}[/bold] match(es) for '{result.term}'")

    _execute(_run)


@app.command()
def nearby(
    pool: ReferencePool = typer.Argument(..., case_sensitive=False),
    lat: float = typer.Option(..., "--lat"),
    lng: float = typer.Option(..., "--lng"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l"),
) -> None:
    """Nearest records of one reference pool."""
    async def _run() -> None:
        factory = await _make_factory()
        service = factory.create_reference_data_service()
        records = await service.nearby(pool, lat, lng, limit)
        console.print(_record_table(pool.value.capitalize(), records))

    _execute(_run)


# ---------------------------------------------------------------------------
# Global version option
# ---------------------------------------------------------------------------

@app.callback()
def _callback(
    version: bool = typer.Option(
        False, "--version", "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Food-share allocation CLI"""


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
