"""Command line entry point: ``screening login|logout|candidates|serve``.

The CLI talks to the spreadsheet gateway directly and remembers the login in
a local session file. ``candidates`` renders one page of the same dashboard
state the HTTP API serves; logs go to stderr so stdout stays pipeable.
"""
import argparse
import asyncio
import getpass
import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from . import __version__
from .config import Settings, get_settings
from .gateway.sheets import SheetsGateway
from .gateway.tokens import get_token_cache
from .logging_config import setup_logging
from .pipelines.dashboard import DashboardState, DashboardView
from .pipelines.query import QUALIFICATION_OPTIONS, SORTABLE_FIELDS, SortDirection, SortSpec
from .pipelines.workflows import load_candidates, validate_login
from .session import SessionManager

logger = logging.getLogger(__name__)

T = TypeVar("T")

TABLE_COLUMNS = [
    ("name", 24),
    ("age", 5),
    ("current_job_title", 24),
    ("current_company", 20),
    ("matching_score", 7),
    ("years_experience", 6),
    ("qualification", 14),
]


async def _with_gateway(config: Settings, flow: Callable[[SheetsGateway], Awaitable[T]]) -> T:
    async with httpx.AsyncClient(timeout=config.google.request_timeout) as client:
        cache = get_token_cache() if config.google.token_cache_enabled else None
        return await flow(SheetsGateway(client, config.google, cache))


def cmd_login(args: argparse.Namespace) -> None:
    config = get_settings()
    session = SessionManager(config.session_file)
    password = args.password if args.password is not None else getpass.getpass("Password: ")

    outcome = asyncio.run(
        _with_gateway(config, lambda gw: validate_login(gw, config.sheets, args.login_name, password))
    )
    if outcome.error is not None:
        raise SystemExit(f"Login failed: {outcome.error}")
    if not outcome.valid:
        raise SystemExit(outcome.message or "Invalid credentials")

    session.sign_in(args.login_name)
    print(f"Logged in as {args.login_name}")


def cmd_logout(args: argparse.Namespace) -> None:
    config = get_settings()
    SessionManager(config.session_file).clear()
    print("Logged out")


def _format_cell(value: Any, width: int) -> str:
    text = f"{value:g}" if isinstance(value, float) else str(value)
    if len(text) > width:
        text = text[: width - 1] + "…"
    return text.ljust(width)


def render_view(view: DashboardView) -> None:
    """Print metrics, the page table and the range line."""
    if view.total_records == 0:
        print("No candidate data found.")
        return
    if view.no_matches:
        print("No candidates match current filters.")
        return

    metrics, page = view.metrics, view.page
    avg_score = "-" if metrics.avg_matching_score is None else f"{metrics.avg_matching_score}%"
    avg_exp = "-" if metrics.avg_years_experience is None else metrics.avg_years_experience
    print(f"Total: {metrics.total}  Avg score: {avg_score}  Avg experience: {avg_exp}")
    print(" ".join(["#".ljust(4)] + [name.ljust(width) for name, width in TABLE_COLUMNS]))
    for rank, record in enumerate(page.items, start=page.start_index):
        cells = [_format_cell(getattr(record, name), width) for name, width in TABLE_COLUMNS]
        print(" ".join([str(rank).ljust(4)] + cells))
    print(f"Showing {page.start_index} to {page.end_index} of {page.total} candidates (page {page.page}/{page.page_count})")


def cmd_candidates(args: argparse.Namespace) -> None:
    config = get_settings()
    session = SessionManager(config.session_file)
    if not session.is_authenticated:
        raise SystemExit("Not logged in. Run: screening login <login name>")

    result = asyncio.run(_with_gateway(config, lambda gw: load_candidates(gw, config.sheets)))
    if not result.ok:
        raise SystemExit("Failed to load candidate data. Try again.")

    state = DashboardState.from_settings(config.dashboard, page_size=args.page_size or config.dashboard.page_size)
    state.load(result.value)
    state.narrow(args.min_exp, args.max_exp, args.min_score, args.max_score, args.qualification)
    state.set_keyword(args.keyword or "", settle=True)
    state.set_sort(SortSpec(args.sort, SortDirection(args.direction)))
    state.go_to_page(args.page)
    render_view(state.view())


def cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("screening.api:app", host=args.host, port=args.port, reload=args.reload)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="screening", description="Candidate screening dashboard CLI")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    lgn = subparsers.add_parser("login", help="Validate credentials against the login sheet and remember the session")
    lgn.add_argument("login_name", help="Login name")
    lgn.add_argument("--password", help="Password (prompted if omitted)")
    lgn.set_defaults(func=cmd_login)

    lgo = subparsers.add_parser("logout", help="Forget the saved session")
    lgo.set_defaults(func=cmd_logout)

    cnd = subparsers.add_parser("candidates", help="Fetch, filter, sort and page candidates")
    cnd.add_argument("--min-exp", type=float, help="Minimum years of experience (default 0)")
    cnd.add_argument("--max-exp", type=float, help="Maximum years of experience (default 30)")
    cnd.add_argument("--min-score", type=float, help="Minimum matching score (default 0)")
    cnd.add_argument("--max-score", type=float, help="Maximum matching score (default: highest in data, at least 100)")
    cnd.add_argument("--qualification", choices=QUALIFICATION_OPTIONS, help="Qualification filter (default All)")
    cnd.add_argument("--keyword", help="Space-separated keywords; all must match")
    cnd.add_argument("--sort", default="matching_score", choices=SORTABLE_FIELDS, help="Sort field")
    cnd.add_argument("--direction", default="desc", choices=["asc", "desc"], help="Sort direction")
    cnd.add_argument("--page", type=int, default=1, help="Page number (clamped to range)")
    cnd.add_argument("--page-size", type=int, help="Rows per page (default from settings)")
    cnd.set_defaults(func=cmd_candidates)

    srv = subparsers.add_parser("serve", help="Run the HTTP API")
    srv.add_argument("--host", default="0.0.0.0")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--reload", action="store_true")
    srv.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    setup_logging(get_settings().logging)

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
