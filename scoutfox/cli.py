"""Command line entry point for ScoutFox."""

from __future__ import annotations

import asyncio
import sys

import click
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scoutfox.dependencies import get_product_resolver, get_search_orchestrator
from scoutfox.services.errors import ScoutFoxError
from scoutfox.services.formatting import format_count, sanitize_text
from scoutfox.services.product_resolver import ProductResolution
from scoutfox.services.query_builder import build_query, build_variants
from scoutfox.services.results import VideoContext, VideoResult
from scoutfox.services.search_orchestrator import ResolutionConfig
from scoutfox.services.text_normalizer import normalize

console = Console()


@click.group()
@click.version_option(version="0.1.0")
def main() -> None:
    """ScoutFox - find review videos for products and products in videos."""


@main.command()
@click.argument("title")
@click.option("--subtitle", default=None, help="Listing subtitle or feature line.")
def queries(title: str, subtitle: str | None) -> None:
    """Show the normalized title and the search variants for a product."""
    empty = "[dim](empty)[/dim]"
    console.print(f"[bold]Normalized:[/bold] {escape(normalize(title)) or empty}")
    console.print(f"[bold]Query:[/bold] {escape(build_query(title, subtitle)) or empty}")

    variants = build_variants(title, subtitle)
    if not variants:
        console.print("[yellow]No search variants for an empty title[/yellow]")
        return

    console.print("[bold]Variants:[/bold]")
    for position, variant in enumerate(variants, start=1):
        console.print(f"  {position}. {escape(variant)}")


@main.command()
@click.argument("title")
@click.option("--subtitle", default=None, help="Listing subtitle or feature line.")
@click.option("--ai", "prefer_ai", is_flag=True, help="Rewrite the title with AI first.")
@click.option("--api-key", default=None, help="YouTube Data API key for this search.")
@click.option("--own-key", is_flag=True, help="Skip the hosted proxy and use your own key.")
@click.option("--groq-api-key", default=None, help="Groq API key for the AI rewrite.")
@click.option("--bypass-cache", is_flag=True, help="Ignore cached results.")
def search(
    title: str,
    subtitle: str | None,
    prefer_ai: bool,
    api_key: str | None,
    own_key: bool,
    groq_api_key: str | None,
    bypass_cache: bool,
) -> None:
    """Find review videos for a product title."""
    config = ResolutionConfig(
        youtube_api_key=sanitize_text(api_key),
        use_own_key=own_key,
        groq_api_key=sanitize_text(groq_api_key),
        bypass_cache=bypass_cache,
    )
    orchestrator = get_search_orchestrator()
    try:
        results = asyncio.run(
            orchestrator.resolve_product_videos(
                title,
                sanitize_text(subtitle),
                prefer_ai=prefer_ai,
                config=config,
            )
        )
    except ScoutFoxError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        sys.exit(1)

    if not results:
        console.print("[yellow]No review videos found[/yellow]")
        return
    console.print(_video_table(results))


@main.command()
@click.option("--title", "video_title", default=None, help="Video title.")
@click.option("--description", default=None, help="Video description.")
@click.option("--channel", "channel_name", default=None, help="Channel name.")
@click.option("--document-title", default=None, help="Page title, used when no video title.")
def extract(
    video_title: str | None,
    description: str | None,
    channel_name: str | None,
    document_title: str | None,
) -> None:
    """Name the products a video is about and link marketplace searches."""
    context = VideoContext(
        video_title=sanitize_text(video_title),
        description=sanitize_text(description),
        channel_name=sanitize_text(channel_name),
        document_title=sanitize_text(document_title),
    )
    if context.video_title is None and context.document_title is None:
        raise click.UsageError("Pass --title or --document-title.")

    resolution = asyncio.run(get_product_resolver().resolve(context))
    console.print(_product_table(resolution))


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
def serve(host: str, port: int) -> None:
    """Run the HTTP API."""
    uvicorn.run("scoutfox.main:app", host=host, port=port)


def _video_table(results: list[VideoResult]) -> Table:
    table = Table(title="Review videos")
    table.add_column("Title")
    table.add_column("Channel", style="cyan")
    table.add_column("Views", justify="right")
    table.add_column("Likes", justify="right")
    table.add_column("Published")
    table.add_column("URL", style="dim")
    for result in results:
        table.add_row(
            escape(result.title),
            escape(result.channel_title),
            format_count(result.view_count),
            format_count(result.like_count),
            escape(result.published_at[:10]),
            f"https://www.youtube.com/watch?v={result.video_id}",
        )
    return table


def _product_table(resolution: ProductResolution) -> Table:
    table = Table(title=f"Products ({resolution.source})")
    table.add_column("Product")
    table.add_column("Confidence", justify="right")
    table.add_column("Search", style="dim")
    for product in resolution.products:
        table.add_row(
            escape(product.candidate.product_name),
            f"{product.candidate.confidence:.0%}",
            escape(product.search_url),
        )
    return table


if __name__ == "__main__":
    main()
