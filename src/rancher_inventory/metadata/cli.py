"""Command-line interface for querying the Rancher inventory."""

from asyncio import run, sleep
from datetime import timedelta
from enum import Enum
from typing import Iterable, Optional

import orjson
import typer
from prometheus_client import CollectorRegistry
from returns.result import Failure, Success
from rich.console import Console
from rich.json import JSON
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from ..log.logger import setup_logging
from .core.config import InventoryConfig
from .core.inventory import RancherInventory
from .core.models import Container, Host, RepositoryHealth

app = typer.Typer(
    name="rancher-inventory",
    help="Read-only view of Rancher containers and hosts",
)
console = Console()


class LogTheme(str, Enum):
    console = "console"
    json_file = "json_file"


MetadataAddrOption = typer.Option(
    None, "--metadata-addr", help="Rancher metadata service address"
)
TimeoutOption = typer.Option(None, "--timeout", help="Request timeout in seconds")
DebugOption = typer.Option(False, "--debug", help="Turn on debug logging output")
JsonOption = typer.Option(False, "--json", help="Output as JSON")
LogThemeOption = typer.Option(
    LogTheme.console,
    "--log-theme",
    help="Logging setup; json_file also writes JSON lines under logs/",
)


def create_config(
    metadata_addr: Optional[str] = None,
    timeout: Optional[float] = None,
    interval: Optional[float] = None,
    debug: bool = False,
) -> InventoryConfig:
    """Build the configuration, letting CLI options override the environment."""
    overrides = {"debug": debug}
    if metadata_addr is not None:
        overrides["metadata_addr"] = metadata_addr
    if timeout is not None:
        overrides["request_timeout"] = timeout
    if interval is not None:
        overrides["metadata_interval"] = timedelta(seconds=interval)
    return InventoryConfig(**overrides)


def _setup_logging(config: InventoryConfig, log_theme: LogTheme, quiet: bool = True):
    level = "DEBUG" if config.debug else ("WARNING" if quiet else "INFO")
    setup_logging(theme=log_theme.value, level=level)


async def _refreshed_inventory(config: InventoryConfig) -> RancherInventory:
    """Create an inventory and run a single refresh cycle."""
    inventory = RancherInventory(config, registry=CollectorRegistry(), start=False)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Fetching metadata from {config.metadata_url}...", total=None)
        await inventory.refresh()
    return inventory


def containers_table(containers: Iterable[Container], title: str = "Containers") -> Table:
    table = Table(title=title)
    table.add_column("Name", style="cyan")
    table.add_column("State", style="magenta")
    table.add_column("Private IP", style="white")
    table.add_column("Service Index", style="white", justify="right")
    table.add_column("Host", style="green")

    for container in containers:
        state = container.state
        if container.is_orphaned:
            state = f"{state} [yellow](orphaned)[/yellow]"
        table.add_row(
            container.name,
            state,
            container.private_ip,
            str(container.service_index),
            container.host_name or "[dim]unknown[/dim]",
        )
    return table


def hosts_table(hosts: Iterable[Host]) -> Table:
    table = Table(title="Hosts")
    table.add_column("UUID", style="cyan")
    table.add_column("Name", style="green")
    for host in hosts:
        table.add_row(host.id, host.name)
    return table


def health_table(health: RepositoryHealth) -> Table:
    colors = {"healthy": "green", "degraded": "yellow", "unhealthy": "red"}
    color = colors.get(health.status, "white")
    table = Table(title=f"Inventory Health: [{color}]{health.status.upper()}[/{color}]")
    table.add_column("Kind", style="cyan")
    table.add_column("Entities", justify="right")
    table.add_column("Refreshed At")
    table.add_column("Last Error", style="red")
    for snapshot in (health.containers, health.hosts):
        table.add_row(
            snapshot.kind,
            f"{snapshot.size:,}",
            snapshot.refreshed_at.isoformat() if snapshot.refreshed_at else "never",
            snapshot.last_error or "",
        )
    return table


def _print_json(data) -> None:
    console.print(JSON(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode()))


@app.command()
def containers(
    metadata_addr: Optional[str] = MetadataAddrOption,
    timeout: Optional[float] = TimeoutOption,
    debug: bool = DebugOption,
    log_theme: LogTheme = LogThemeOption,
    json_output: bool = JsonOption,
):
    """List every container, with the name of the host it runs on."""

    async def _containers():
        config = create_config(metadata_addr, timeout, debug=debug)
        _setup_logging(config, log_theme)
        async with await _refreshed_inventory(config) as inventory:
            match inventory.service.containers():
                case Success(found):
                    if json_output:
                        _print_json([c.to_dict() for c in found])
                    else:
                        console.print(containers_table(found))
                case Failure(error):
                    console.print(f"[red]Error: {error}[/red]")
                    raise typer.Exit(1)

    run(_containers())


@app.command()
def container(
    name: str = typer.Argument(..., help="Container name"),
    metadata_addr: Optional[str] = MetadataAddrOption,
    timeout: Optional[float] = TimeoutOption,
    debug: bool = DebugOption,
    log_theme: LogTheme = LogThemeOption,
    json_output: bool = JsonOption,
):
    """Show a single container."""

    async def _container():
        config = create_config(metadata_addr, timeout, debug=debug)
        _setup_logging(config, log_theme)
        async with await _refreshed_inventory(config) as inventory:
            match inventory.service.container(name):
                case Success(found):
                    if json_output:
                        _print_json(found.to_dict())
                    else:
                        console.print(containers_table([found], title=f"Container: {name}"))
                case Failure(error):
                    console.print(f"[red]Error: {error}[/red]")
                    raise typer.Exit(1)

    run(_container())


@app.command()
def hosts(
    metadata_addr: Optional[str] = MetadataAddrOption,
    timeout: Optional[float] = TimeoutOption,
    debug: bool = DebugOption,
    log_theme: LogTheme = LogThemeOption,
    json_output: bool = JsonOption,
):
    """List every host."""

    async def _hosts():
        config = create_config(metadata_addr, timeout, debug=debug)
        _setup_logging(config, log_theme)
        async with await _refreshed_inventory(config) as inventory:
            match inventory.repository.hosts():
                case Success(found):
                    if json_output:
                        _print_json([h.to_dict() for h in found])
                    else:
                        console.print(hosts_table(found))
                case Failure(error):
                    console.print(f"[red]Error: {error}[/red]")
                    raise typer.Exit(1)

    run(_hosts())


@app.command()
def health(
    metadata_addr: Optional[str] = MetadataAddrOption,
    timeout: Optional[float] = TimeoutOption,
    debug: bool = DebugOption,
    log_theme: LogTheme = LogThemeOption,
    json_output: bool = JsonOption,
):
    """Run one refresh cycle and report the health of the cache."""

    async def _health():
        config = create_config(metadata_addr, timeout, debug=debug)
        _setup_logging(config, log_theme)
        async with await _refreshed_inventory(config) as inventory:
            report = inventory.health()
            if json_output:
                console.print(JSON(report.to_json_bytes().decode()))
            else:
                console.print(health_table(report))
            if report.status == "unhealthy":
                raise typer.Exit(1)

    run(_health())


@app.command()
def watch(
    interval: float = typer.Option(30.0, help="Seconds between refresh cycles"),
    metadata_addr: Optional[str] = MetadataAddrOption,
    timeout: Optional[float] = TimeoutOption,
    debug: bool = DebugOption,
    log_theme: LogTheme = LogThemeOption,
):
    """Keep the cache refreshing and print the containers after every cycle."""

    async def _watch():
        config = create_config(metadata_addr, timeout, interval=interval, debug=debug)
        _setup_logging(config, log_theme, quiet=False)
        async with RancherInventory(config, registry=CollectorRegistry()) as inventory:
            await inventory.wait_until_ready()
            while True:
                match inventory.service.containers():
                    case Success(found):
                        console.print(containers_table(found))
                    case Failure(error):
                        console.print(f"[yellow]{error}[/yellow]")
                await sleep(interval)

    try:
        run(_watch())
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


if __name__ == "__main__":
    app()
