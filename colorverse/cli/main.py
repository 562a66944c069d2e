"""Main CLI entry point for ColorVerse."""

import asyncio
import json
import sys
from typing import Optional

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from colorverse import __version__
from colorverse.config import ConfigurationError, build_manager, load_config, setup_logging
from colorverse.llm import AllProvidersFailedError, LLMError

# Load environment variables from .env file
load_dotenv()

console = Console()


def _load(ctx: click.Context):
    """Load configuration once per invocation."""
    if "config_obj" not in ctx.obj:
        try:
            config = load_config(ctx.obj["config"])
        except ConfigurationError as e:
            console.print(f"[red]Configuration error:[/red] {e}")
            ctx.exit(2)
        if ctx.obj["verbose"]:
            config.logging.level = "DEBUG"
        setup_logging(config)
        ctx.obj["config_obj"] = config
    return ctx.obj["config_obj"]


@click.group()
@click.version_option(version=__version__, prog_name="ColorVerse")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output"
)
@click.option(
    "--config",
    "-c",
    default="colorverse.yaml",
    help="Configuration file path",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config: str) -> None:
    """ColorVerse: AI text completions with multi-provider fallback."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config

    if verbose:
        console.print(f"[green]ColorVerse v{__version__}[/green]")
        console.print(f"[dim]Config: {config}[/dim]")


@cli.command()
@click.argument("prompt")
@click.option("--system", "-s", "system_prompt", help="System instruction")
@click.option("--model", "-m", help="Explicit model id (skips model fallback)")
@click.option(
    "--temperature", "-t", type=click.FloatRange(0.0, 2.0), default=0.5, show_default=True
)
@click.option("--max-tokens", type=click.IntRange(min=1), help="Maximum output tokens")
@click.option("--json", "json_mode", is_flag=True, help="Request and decode JSON output")
@click.pass_context
def complete(
    ctx: click.Context,
    prompt: str,
    system_prompt: Optional[str],
    model: Optional[str],
    temperature: float,
    max_tokens: Optional[int],
    json_mode: bool,
) -> None:
    """Send PROMPT through the provider fallback chain."""
    config = _load(ctx)

    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})

    options = {
        "model": model,
        "temperature": temperature,
        "max_tokens": max_tokens,
        "json": json_mode,
    }

    async def _complete():
        async with build_manager(config) as manager:
            if json_mode:
                return None, await manager.create_json_completion(messages, options)
            return await manager.create_completion(messages, options), None

    try:
        with console.status("[bold green]Generating..."):
            result, data = asyncio.run(_complete())
    except AllProvidersFailedError as e:
        console.print(f"[red]All providers failed:[/red] {e}")
        ctx.exit(1)
    except LLMError as e:
        console.print(f"[red]Error:[/red] {e}")
        ctx.exit(1)
    except ValidationError as e:
        console.print(f"[red]Invalid options:[/red] {e}")
        ctx.exit(2)

    if data is not None:
        click.echo(json.dumps(data, indent=2, ensure_ascii=False))
        return

    console.print(Panel(result.content, title=f"{result.provider}/{result.model}"))
    console.print(
        f"[dim]Tokens: {result.usage.prompt_tokens} prompt, "
        f"{result.usage.completion_tokens} completion, "
        f"{result.usage.total_tokens} total[/dim]"
    )


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show provider order and credential status.

    Failure history lives in a running manager, so a fresh process only
    shows whether each provider can be used with the configured keys.
    """
    config = _load(ctx)
    manager = build_manager(config)
    usable = set(manager.get_available_providers())

    table = Table(title="Provider Status")
    table.add_column("Priority", justify="right")
    table.add_column("Provider", style="cyan")
    table.add_column("API Key")
    table.add_column("Usable")

    for index, entry in enumerate(manager.get_status()["providers"], start=1):
        table.add_row(
            str(index),
            entry["display_name"],
            "[green]SET[/green]" if entry["has_api_key"] else "[yellow]MISSING[/yellow]",
            "[green]yes[/green]" if entry["name"] in usable else "[red]no[/red]",
        )

    console.print(table)


@cli.command()
@click.pass_context
def providers(ctx: click.Context) -> None:
    """List configured providers and their candidate models."""
    config = _load(ctx)
    manager = build_manager(config)

    table = Table(title="Providers")
    table.add_column("Provider", style="cyan")
    table.add_column("Auth")
    table.add_column("Models")

    for provider_id in manager.provider_priority:
        info = manager.providers[provider_id].get_model_info()
        auth = info["auth_method"] if info["requires_auth"] else "optional"
        table.add_row(info["name"], auth, "\n".join(info["models"]))

    console.print(table)


def main() -> int:
    """Run the CLI and return an exit code."""
    try:
        cli(standalone_mode=False)
    except click.exceptions.Exit as e:
        return e.exit_code
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.Abort:
        console.print("[yellow]Aborted[/yellow]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
