"""
demo_sync.py – Console walkthrough of the portfolio / certificate sync layer

Run:
    python demo_sync.py "Kim Minji"

Requires:
    .env file with STORE_TRANSPORT and STORE_BASE_URL / STORE_RPC_URL set.
    See .env.example for format.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# ── make src/ importable without installing the package ──────────────────────
sys.path.insert(0, str(Path(__file__).parent / "src"))

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from portfolio_tracker.config import get_settings
from portfolio_tracker.errors import StoreError, ValidationError
from portfolio_tracker.models import PORTFOLIO_CATEGORIES, CertificateProgress, CertificateStatus, PortfolioItem
from portfolio_tracker.notices import Notice, NoticeLevel
from portfolio_tracker.services import build_services

console = Console()

NOTICE_STYLE = {
    NoticeLevel.ERROR:   "bold red",
    NoticeLevel.WARNING: "bold yellow",
    NoticeLevel.INFO:    "cyan",
    NoticeLevel.SUCCESS: "bold green",
}

CATEGORY_LABEL = {c["id"]: f'{c["icon"]} {c["label"]}' for c in PORTFOLIO_CATEGORIES}


# ─── Display helpers ─────────────────────────────────────────────────────────

def _print_notice(notice: Notice) -> None:
    style = NOTICE_STYLE[notice.level]
    console.print(f"[{style}]{notice.icon} {notice.message}[/{style}]")


def _bar(percent: int, width: int = 20) -> str:
    filled = round(percent / 100 * width)
    return "[" + "█" * filled + "░" * (width - filled) + f"] {percent}%"


def show_portfolio(owner: str, items: list[PortfolioItem]) -> None:
    table = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_cyan", padding=(0, 1))
    table.add_column("Created",  style="dim", no_wrap=True)
    table.add_column("Category", no_wrap=True)
    table.add_column("Title",    style="bold white")
    table.add_column("Image",    justify="center")
    for item in items:
        table.add_row(
            item.created_at.strftime("%Y-%m-%d") if item.created_at else "—",
            CATEGORY_LABEL.get(item.category, item.category),
            item.title,
            "🖼️" if item.image else "",
        )
    if not items:
        table.add_row("—", "—", "[dim]No projects yet[/dim]", "")
    console.print(Panel(table, title=f"[bold]{owner}'s portfolio[/bold]", border_style="cyan"))


def show_certificates(owner: str, statuses: list[CertificateStatus],
                      progress: CertificateProgress) -> None:
    table = Table(box=box.ROUNDED, show_header=True, header_style="bold magenta", padding=(0, 1))
    table.add_column("",            justify="center")
    table.add_column("Certificate", style="white")
    table.add_column("English",     style="dim white")
    table.add_column("Obtained",    no_wrap=True)
    for s in statuses:
        table.add_row(
            "[bold green]✓[/bold green]" if s.obtained else "[dim]·[/dim]",
            f'{s.definition["icon"]} {s.name}',
            s.definition["label"],
            s.obtained_date or "",
        )
    console.print(Panel(table, title=f"[bold]{owner}'s certificates[/bold]", border_style="magenta"))
    console.print(f"  Progress {_bar(progress.percent)}  "
                  f"({progress.obtained}/{progress.total}, {progress.remaining} to go)")


# ─── Main ────────────────────────────────────────────────────────────────────

async def run(name: str) -> None:
    services = build_services(get_settings(), on_notice=_print_notice)
    for label, status in services.settings.status_summary().items():
        console.print(f"[dim]{label}:[/dim] {status}")
    console.print()

    await services.session.login_student(name)
    show_portfolio(name, await services.portfolio.load())

    services.session.login_cert_viewer(name)
    statuses = await services.certificates.load()
    show_certificates(name, statuses, services.certificates.progress())


def main() -> None:
    console.print()
    console.print(Panel(
        "[bold]Student Portfolio & Certificate Tracker[/bold]\n"
        "[dim]Remote store sync  •  console walkthrough[/dim]",
        style="on dark_cyan",
        expand=False,
    ))

    name = " ".join(sys.argv[1:]) or console.input("[bold]Student name:[/bold] ")

    try:
        asyncio.run(run(name))

    except ValueError as e:
        console.print(f"\n[bold red]Configuration error:[/bold red] {e}")
        console.print("[dim]Create a .env file based on .env.example and retry.[/dim]")
        sys.exit(1)

    except (ValidationError, StoreError):
        # already reported through the notice listener
        sys.exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
