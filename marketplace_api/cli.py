"""
Marketplace CLI.

Command-line interface for common operations.
"""

import sys

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

app = typer.Typer(
    name="marketplace",
    help="Food Marketplace management CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def db_init():
    """Create database tables."""
    from marketplace_api.models import Base
    from marketplace_shared.infrastructure.db import engine

    console.print("[blue]Creating tables...[/blue]")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Table creation failed: {e}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Tables created/verified[/green]")


@app.command()
def seed(
    force: bool = typer.Option(False, "--force", "-f", help="Allow seeding in production"),
):
    """Seed the database with demo users, a restaurant and its menu."""
    from marketplace_api.models import Base
    from marketplace_api.seed import seed as seed_database
    from marketplace_shared.config.settings import settings
    from marketplace_shared.infrastructure.db import engine, get_db_context

    if settings.environment == "production" and not force:
        console.print("[red]Cannot seed production without --force[/red]")
        raise typer.Exit(1)

    console.print(f"[blue]Seeding database for: {settings.environment}[/blue]")
    try:
        Base.metadata.create_all(bind=engine)
        with get_db_context() as db:
            ids = seed_database(db)
    except SQLAlchemyError as e:
        console.print(f"[red]✗ Seeding failed: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Seeded rows")
    table.add_column("Row", style="cyan")
    table.add_column("ID", style="green")
    for name, row_id in ids.items():
        table.add_row(name, str(row_id))
    console.print(table)


# =============================================================================
# Configuration Commands
# =============================================================================

@app.command()
def check_config():
    """Validate configuration for the current environment."""
    from marketplace_shared.config.settings import settings

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("environment", settings.environment)
    table.add_row("debug", str(settings.debug))
    table.add_row("database", settings.database_url.split("@")[-1])
    table.add_row("order_tax_rate", str(settings.order_tax_rate))
    table.add_row("order_delivery_fee", str(settings.order_delivery_fee))
    table.add_row("page size", f"{settings.default_page_size} (max {settings.max_page_size})")
    console.print(table)

    errors = settings.validate_production_config()
    if errors:
        for error in errors:
            console.print(f"[red]✗ {error}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Configuration OK[/green]")


# =============================================================================
# Health Commands
# =============================================================================

@app.command()
def health(
    url: str = typer.Option("http://localhost:8000/api/health/detailed", help="Health endpoint"),
):
    """Check the running API."""
    import time

    import httpx

    table = Table(title="Service Health")
    table.add_column("Service", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Response Time", style="yellow")

    start = time.time()
    try:
        response = httpx.get(url, timeout=5.0)
    except httpx.HTTPError as e:
        table.add_row("REST API", f"✗ {type(e).__name__}", "-")
        console.print(table)
        raise typer.Exit(1)

    elapsed = (time.time() - start) * 1000
    if response.status_code == 200:
        table.add_row("REST API", "✓ Healthy", f"{elapsed:.0f}ms")
    else:
        table.add_row("REST API", f"✗ Status {response.status_code}", f"{elapsed:.0f}ms")
    console.print(table)


@app.command()
def version():
    """Show version information."""
    table = Table(title="Marketplace Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("API", "0.1.0")
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
