"""
UTXO Indexer - Command Line Interface
=======================================
CLI per avvio server e operazioni offline sul ledger.

Last Updated: 2026-10-19
Version: 1.0.0

Commands:
- serve: Avvia API REST
- init-db: Crea schema database
- status: Height corrente
- balance / utxos: Query per address
- submit: Submit blocco da file JSON
- rollback: Rollback a height
- block-id: Calcola id blocco
- show-config: Mostra configurazione effettiva
"""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Internal imports
from utxo_indexer.config import IndexerSettings, override_settings
from utxo_indexer.domain.hashing import compute_block_id
from utxo_indexer.errors import ConfigError, StateError
from utxo_indexer.logging_setup import setup_logging, AuditLogger
from utxo_indexer.services.indexer_service import IndexerService
from utxo_indexer.storage.db import LedgerDatabase


# ============================================================================
# CLI APP
# ============================================================================

app = typer.Typer(
    name="utxo-indexer",
    help="UTXO Indexer - Ledger indexer CLI",
    add_completion=False
)

console = Console()


# ============================================================================
# GLOBAL STATE
# ============================================================================

class CLIState:
    """Global CLI state"""
    config: Optional[IndexerSettings] = None
    database: Optional[LedgerDatabase] = None
    service: Optional[IndexerService] = None
    verbose: bool = False

    def close(self):
        if self.database is not None:
            self.database.close()
        self.database = None
        self.service = None


state = CLIState()


def _get_config() -> IndexerSettings:
    if state.config is None:
        try:
            state.config = override_settings()
        except ConfigError as e:
            _fail(e.message)
    return state.config


def _get_service(enable_console_log: bool = False) -> IndexerService:
    """Build logging, database and service on first use"""
    if state.service is None:
        config = _get_config()

        setup_logging(
            log_level=config.log_level,
            log_to_file=config.log_to_file,
            log_dir=config.log_dir,
            log_format=config.log_format,
            log_rotation_mb=config.log_rotation_mb,
            log_retention_days=config.log_retention_days,
            enable_console=enable_console_log or state.verbose,
        )

        audit_logger = AuditLogger(config.log_dir) if config.enable_audit_log else None

        state.database = LedgerDatabase(config)
        state.service = IndexerService(state.database, config, audit_logger)

    return state.service


def _fail(message: str):
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(1)


# ============================================================================
# SERVER COMMANDS
# ============================================================================

@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
):
    """Start REST API server"""
    import uvicorn

    from utxo_indexer.api.rest_api import initialize_api

    config = _get_config()
    try:
        service = _get_service(enable_console_log=True)
    except StateError as e:
        _fail(f"Error opening database: {e.message}")

    api = initialize_api(service, config)

    bind_host = host or config.api_host
    bind_port = port or config.api_port

    console.print(Panel.fit(
        f"[green]Listening on[/green] [cyan]http://{bind_host}:{bind_port}[/cyan]\n"
        f"Database: [cyan]{config.database_url}[/cyan]",
        title=config.service_name,
        border_style="green"
    ))

    uvicorn.run(api, host=bind_host, port=bind_port, log_level=config.log_level.lower())


@app.command("init-db")
def init_db():
    """Create database schema"""
    try:
        service = _get_service()
        height = service.get_current_height()
    except StateError as e:
        _fail(f"Error initializing database: {e.message}")

    console.print(Panel.fit(
        f"[green]Database ready[/green]\n\n"
        f"URL: [cyan]{state.config.database_url}[/cyan]\n"
        f"Height: [cyan]{height}[/cyan]",
        title="UTXO Indexer",
        border_style="green"
    ))


# ============================================================================
# QUERY COMMANDS
# ============================================================================

@app.command("status")
def status():
    """Show ledger status"""
    try:
        info = _get_service().get_status()
    except StateError as e:
        _fail(f"Error reading ledger: {e.message}")

    table = Table(title="Ledger Status", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Height", str(info["height"]))
    table.add_row("Blocks", str(info["blocks"]))
    table.add_row("Database", state.config.database_url)

    console.print(table)


@app.command("balance")
def balance(
    address: str = typer.Argument(..., help="Address")
):
    """Show balance of address"""
    try:
        amount = _get_service().query_balance(address)
    except StateError as e:
        _fail(f"Error reading ledger: {e.message}")

    console.print(f"[cyan]{address}[/cyan]: [green]{amount}[/green]")


@app.command("utxos")
def utxos(
    address: str = typer.Argument(..., help="Address")
):
    """List unspent outputs of address"""
    try:
        records = _get_service().list_unspent(address)
    except StateError as e:
        _fail(f"Error reading ledger: {e.message}")

    if not records:
        console.print(f"[yellow]No unspent outputs for {address}[/yellow]")
        return

    table = Table(title=f"Unspent outputs: {address}")
    table.add_column("Output", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_column("Height", justify="right")

    for record in records:
        table.add_row(str(record.key), str(record.value), str(record.created_at_height))

    console.print(table)


# ============================================================================
# LEDGER COMMANDS
# ============================================================================

@app.command("submit")
def submit(
    file: Path = typer.Argument(..., help="Block JSON file", exists=True, dir_okay=False)
):
    """Submit block from JSON file"""
    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Cannot read block file: {e}")

    if not isinstance(data, dict):
        _fail("Block file must contain a JSON object")

    try:
        outcome = _get_service().submit_block_data(data)
    except StateError as e:
        _fail(f"Error applying block: {e.message}")

    if not outcome.accepted:
        _fail(f"Block rejected ({outcome.code}): {outcome.reason}")

    console.print(
        f"[green]Block accepted[/green] at height [cyan]{outcome.height}[/cyan]"
    )


@app.command("rollback")
def rollback(
    height: str = typer.Argument(..., help="Target height")
):
    """Rollback ledger to height"""
    try:
        outcome = _get_service().rollback_to(height)
    except StateError as e:
        _fail(f"Error during rollback: {e.message}")

    if not outcome.accepted:
        _fail(f"Rollback rejected ({outcome.code}): {outcome.reason}")

    console.print(
        f"[green]Rolled back[/green] to height [cyan]{outcome.new_height}[/cyan] "
        f"({outcome.removed_blocks} blocks removed)"
    )


@app.command("block-id")
def block_id(
    height: int = typer.Argument(..., help="Block height"),
    tx_ids: List[str] = typer.Argument(None, help="Transaction ids in block order"),
):
    """Compute the id of a block"""
    console.print(compute_block_id(height, tx_ids or []))


@app.command("show-config")
def show_config():
    """Show effective configuration"""
    console.print_json(_get_config().to_json())


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

@app.callback()
def main(
    ctx: typer.Context,
    data_dir: Optional[Path] = typer.Option(
        None,
        "--data-dir",
        "-d",
        help="Data directory"
    ),
    database_url: Optional[str] = typer.Option(
        None,
        "--database-url",
        help="SQLAlchemy database URL"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Verbose output"
    )
):
    """
    UTXO Indexer - Ledger indexer CLI

    Avvia il server o opera direttamente sul database del ledger.
    """
    overrides = {}
    if data_dir is not None:
        overrides["data_dir"] = data_dir
    if database_url is not None:
        overrides["database_url"] = database_url

    state.close()
    try:
        state.config = override_settings(**overrides)
    except ConfigError as e:
        _fail(e.message)
    state.verbose = verbose

    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")

    ctx.call_on_close(state.close)


if __name__ == "__main__":
    app()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "app",
]
