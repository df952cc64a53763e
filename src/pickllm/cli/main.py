"""
Rich CLI interface for PickLLM.

Runs side-by-side comparisons from the terminal and edits persisted
preferences (credential, target list, default overrides).
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from pickllm import __version__
from pickllm.core.config import get_settings
from pickllm.core.errors import PickLLMError
from pickllm.core.models import (
    LifecycleState,
    RunOverrides,
    SortKey,
    Target,
    TargetView,
)
from pickllm.core.orchestrator import Orchestrator
from pickllm.core.preferences import Preferences, PreferencesStore
from pickllm.core.registry import TargetRegistry
from pickllm.utils.logging import setup_logging

app = typer.Typer(
    name="pickllm",
    help="Compare responses from different LLMs side by side",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    setup_logging(level="DEBUG" if verbose else None)


def get_store() -> PreferencesStore:
    """Get the preferences store."""
    return PreferencesStore(get_settings().comparison.preferences_path)


def load_preferences() -> Preferences:
    try:
        return get_store().load()
    except PickLLMError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def registry_from(preferences: Preferences) -> TargetRegistry:
    if preferences.targets is None:
        return TargetRegistry.from_ids(get_settings().comparison.default_targets)
    return TargetRegistry(preferences.targets)


def save_registry(preferences: Preferences, registry: TargetRegistry) -> None:
    preferences.targets = list(registry)
    get_store().save(preferences)


def get_orchestrator(preferences: Preferences) -> Orchestrator:
    """Get orchestrator instance configured from preferences."""
    return Orchestrator(
        targets=registry_from(preferences),
        credential=preferences.credential,
    )


def _render_target(view: TargetView) -> Panel:
    result = view.result
    title = f"[bold cyan]{view.target_id}[/bold cyan]"
    if not view.enabled:
        title += " [dim](disabled)[/dim]"

    if result is None:
        return Panel("[dim]Ready to run[/dim]", title=title)

    if result.error_kind is not None:
        return Panel(
            f"[red]Error occurred[/red]\n{result.error_message}",
            title=f"[bold red]{view.target_id}[/bold red]",
            subtitle=f"[dim]{result.error_kind.value} | {result.elapsed_seconds:.2f}s[/dim]",
        )

    return Panel(
        Markdown(result.response_text),
        title=title,
        subtitle=(
            f"[dim]{result.total_tokens} tokens | {result.elapsed_seconds:.2f}s | "
            f"${result.total_cost:.6f}[/dim]"
        ),
    )


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold cyan]PickLLM[/bold cyan] v{__version__}")


@app.command()
def compare(
    prompt: str = typer.Argument(..., help="The prompt to compare"),
    targets: Optional[list[str]] = typer.Option(
        None, "--target", "-m", help="Target to run (repeatable); defaults to enabled targets"
    ),
    temperature: Optional[float] = typer.Option(None, "--temp", "-t", help="Temperature (0.0-2.0)"),
    top_p: Optional[float] = typer.Option(None, "--top-p", help="Top-p (0.0-1.0)"),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Maximum tokens"),
    sort: SortKey = typer.Option(SortKey.INSERTION, "--sort", "-s", help="Display order"),
):
    """Compare responses from every enabled target."""
    preferences = load_preferences()

    if not preferences.credential and not get_settings().openai_api_key:
        console.print("[red]No API key set.[/red] Run [bold]pickllm set-key[/bold] first.")
        raise typer.Exit(1)
    if not prompt.strip():
        console.print("[red]Prompt must not be empty.[/red]")
        raise typer.Exit(1)

    given = {"temperature": temperature, "top_p": top_p, "max_tokens": max_tokens}
    try:
        overrides = RunOverrides.model_validate({
            **preferences.overrides.model_dump(),
            **{k: v for k, v in given.items() if v is not None},
        })
    except ValueError as e:
        console.print(f"[red]Invalid override: {e}[/red]")
        raise typer.Exit(1)

    orch = get_orchestrator(preferences)
    if targets:
        unknown = [t for t in targets if t not in orch.registry]
        if unknown:
            console.print(f"[red]Unknown targets: {', '.join(unknown)}[/red]")
            raise typer.Exit(1)
        for target in orch.registry:
            orch.toggle_target(target.id, target.id in targets)

    if not orch.registry.enabled_ids():
        console.print("[red]No targets enabled.[/red]")
        raise typer.Exit(1)

    async def run():
        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                console=console,
                transient=True,
            ) as progress:
                progress.add_task(
                    f"Querying {len(orch.registry.enabled_ids())} targets in parallel...",
                    total=None,
                )
                return await orch.run_comparison(prompt, overrides)
        finally:
            await orch.aclose()

    summary = asyncio.run(run())
    views = orch.states()

    for target_id in orch.sorted_targets(sort):
        view = views[target_id]
        if view.lifecycle == LifecycleState.IDLE:
            continue
        if view.result is not None and view.result.error_kind is not None:
            console.print(f"[red]{target_id} Error:[/red] {view.result.error_message}")
        console.print(_render_target(view))

    if summary is None:
        return

    table = Table(title="Run Summary", show_header=True)
    table.add_column("Targets", justify="right")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Input Cost", justify="right")
    table.add_column("Output Cost", justify="right")
    table.add_column("Total Cost", justify="right", style="bold")
    table.add_row(
        str(len(summary.target_ids)),
        str(summary.succeeded),
        str(summary.failed),
        f"${summary.total_input_cost:.6f}",
        f"${summary.total_output_cost:.6f}",
        f"${summary.total_cost:.6f}",
    )
    console.print(table)


@app.command()
def targets():
    """List registered targets."""
    registry = registry_from(load_preferences())

    table = Table(title="Targets", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Target", style="cyan")
    table.add_column("Enabled")

    for position, target in enumerate(registry, start=1):
        status = "[green]yes[/green]" if target.enabled else "[red]no[/red]"
        table.add_row(str(position), target.id, status)

    console.print(table)


@app.command()
def enable(target_id: str = typer.Argument(..., help="Target to enable")):
    """Include a target in the next comparison."""
    _set_enabled(target_id, True)


@app.command()
def disable(target_id: str = typer.Argument(..., help="Target to disable")):
    """Exclude a target from the next comparison."""
    _set_enabled(target_id, False)


def _set_enabled(target_id: str, enabled: bool) -> None:
    preferences = load_preferences()
    registry = registry_from(preferences)
    try:
        registry.toggle(target_id, enabled)
    except PickLLMError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    save_registry(preferences, registry)
    state = "enabled" if enabled else "disabled"
    console.print(f"[green]{target_id} {state}[/green]")


@app.command("set-targets")
def set_targets(ids: list[str] = typer.Argument(..., help="Target ids in display order")):
    """Replace the target list."""
    preferences = load_preferences()
    registry = registry_from(preferences)
    try:
        registry.replace(ids)
    except PickLLMError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    save_registry(preferences, registry)
    console.print(f"[green]Targets set:[/green] {', '.join(registry.ids)}")


@app.command("set-key")
def set_key(
    forget: bool = typer.Option(
        False,
        "--forget",
        help="Remove the saved key instead of setting one (OPENAI_API_KEY still applies)",
    ),
):
    """Save the provider API key to the preferences file."""
    preferences = load_preferences()

    if forget:
        preferences.credential = None
        get_store().save(preferences, remember_credential=False)
        console.print("[yellow]API key removed from preferences file[/yellow]")
        return

    api_key = typer.prompt("API key", hide_input=True).strip()
    if not api_key:
        console.print("[red]API key must not be empty.[/red]")
        raise typer.Exit(1)

    preferences.credential = api_key
    get_store().save(preferences)
    console.print("[green]API key saved[/green]")


@app.command()
def config():
    """Show current configuration."""
    settings = get_settings()
    preferences = load_preferences()

    table = Table(title="PickLLM Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Forwarding Endpoint", settings.forwarding.endpoint_url)
    table.add_row("Forwarding Timeout", f"{settings.forwarding.timeout_seconds}s")
    table.add_row("Pricing URL", settings.pricing.url)
    table.add_row("Preferences", str(settings.comparison.preferences_path))
    table.add_row("Log Level", settings.comparison.log_level)
    table.add_row("API Key Set", str(bool(preferences.credential or settings.openai_api_key)))
    for name, value in preferences.overrides.model_dump().items():
        table.add_row(f"Override {name}", "default" if value is None else str(value))

    console.print(table)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
