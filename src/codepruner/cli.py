"""Typer CLI for CodePruner."""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="codepruner", help="CodePruner: endpoint usage collector and analyzer")
console = Console()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the CodePruner API server."""
    import uvicorn
    from codepruner.app import create_app

    console.print(f"[bold green]Starting CodePruner on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


async def _with_db(coro_factory):
    from codepruner.common.logging import setup_logging
    from codepruner.common.config import get_settings
    from codepruner.deps import get_db

    setup_logging(get_settings().log_level)
    db = get_db()
    await db.init()
    await db.create_all()
    try:
        return await coro_factory()
    finally:
        await db.close()


@app.command()
def maintenance():
    """Run the retention sweep and endpoint analysis once, now."""
    from codepruner.deps import get_scheduler

    report = asyncio.run(_with_db(lambda: get_scheduler().run_now()))
    if report is None:
        console.print("[bold yellow]Cycle already running[/bold yellow]")
        raise typer.Exit(1)

    console.print(
        f"[bold green]Done[/bold green]: deleted {report.events_deleted} log(s), "
        f"analyzed {report.endpoints_analyzed} endpoint(s)"
    )
    failures = {**report.sweep.failures, **report.analysis.failures}
    for tenant_id, reason in failures.items():
        console.print(f"  [red]{tenant_id}[/red]: {reason}")
    for phase, reason in report.phase_errors.items():
        console.print(f"  [bold red]{phase} failed[/bold red]: {reason}")


@app.command()
def analyze(
    project_id: str = typer.Argument(..., help="Project (tenant) id"),
):
    """Analyze a single project's endpoints and print the result."""
    from codepruner.common.exceptions import AnalysisError
    from codepruner.deps import get_aggregator, get_db, get_status_store

    async def run():
        count = await get_aggregator().analyze_tenant(project_id)
        async with get_db().get_session() as session:
            rows = await get_status_store().list_for_tenant(session, project_id)
        return count, rows

    try:
        count, rows = asyncio.run(_with_db(run))
    except AnalysisError as e:
        console.print(f"[bold red]{e.code}[/bold red]: {e.message}")
        raise typer.Exit(1)

    table = Table(title=f"{count} endpoint(s)")
    table.add_column("Status")
    table.add_column("Method")
    table.add_column("Route")
    table.add_column("Calls", justify="right")
    colors = {"dead": "red", "risky": "yellow", "active": "green"}
    for row in rows:
        table.add_row(
            f"[{colors[row.status]}]{row.status}[/{colors[row.status]}]",
            row.method, row.route, str(row.call_count),
        )
    console.print(table)


@app.command("create-project")
def create_project(
    name: str = typer.Argument(..., help="Project name"),
    slug: str = typer.Argument(..., help="URL-safe project slug"),
    plan: str = typer.Option("free", help="Plan: free or pro"),
    description: str = typer.Option("", help="Free-form description"),
):
    """Create a project and print its API key (shown once)."""
    from codepruner.deps import get_db, get_tenant_service
    from codepruner.plans.catalogue import PLANS

    if plan not in PLANS:
        console.print(
            f"[bold red]Unknown plan {plan!r}[/bold red] (choose from: {', '.join(PLANS)})"
        )
        raise typer.Exit(1)

    async def run():
        svc = get_tenant_service()
        async with get_db().get_session() as session:
            if await svc.get_by_slug(session, slug) is not None:
                return None
            return await svc.create_tenant(
                session, name, slug, plan=plan, description=description,
            )

    created = asyncio.run(_with_db(run))
    if created is None:
        console.print(f"[bold red]Slug {slug!r} already in use[/bold red]")
        raise typer.Exit(1)
    tenant, raw_key = created
    console.print(f"[bold]{tenant.id}[/bold] ({tenant.plan})")
    console.print(f"API key: [bold]{raw_key}[/bold]")


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check CodePruner server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
