import asyncio
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress
from rich.table import Table

from .config import get_config_path, load_config, update_config
from .decorators import handle_errors
from .errors import ConfigError, ContentNotFoundError

# Initialize Rich Console
console = Console()

# Configure logging to use Rich's RichHandler
logging.basicConfig(
    level=logging.INFO,  # Set to INFO by default, DEBUG if verbose
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True)]
)
logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".reelmatch"

# Main app
app = typer.Typer(help="Content similarity and recommendation matching for movies and TV.")

# Command groups
similarity_app = typer.Typer(help="Compute and inspect the similarity graph")
app.add_typer(similarity_app, name="similarity")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose mode"),
    database: Optional[str] = typer.Option(
        None, "--database", "-d",
        help="Database URL, SQLite file or directory (default: config, then ~/.reelmatch)",
    ),
):
    """
    reelmatch - similarity graph and recommendation matching for a movie/TV catalog.

    Stores content in SQLite (or any SQLAlchemy database), scores items
    against each other, and resolves AI recommendations to catalog entries.
    """
    if verbose:
        logging.getLogger("reelmatch").setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
        console.print("[bold green]Verbose mode enabled.[/bold green]")
    ctx.obj = {"database": database}


def _database_target(ctx: typer.Context):
    target = (ctx.obj or {}).get("database")
    if target:
        return target
    config = load_config()
    return config.database.url or DEFAULT_DATA_DIR


@contextmanager
def _open_session(ctx: typer.Context):
    """Open the content database for one command."""
    from .db import close_db, init_db, session_scope

    config = load_config()
    init_db(_database_target(ctx), echo=config.database.echo)
    try:
        with session_scope() as session:
            yield session
    finally:
        close_db()


def _build_provider():
    from .ai.llm_providers import GeminiProvider

    config = load_config()
    if not config.llm.api_key:
        raise ConfigError("GEMINI_API_KEY is not set")
    return GeminiProvider.from_api_key(
        config.llm.api_key,
        model=config.llm.model,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
        timeout=config.llm.timeout,
    )


def _build_index():
    """Vector index for the configured backend.

    The local backend starts empty; callers fill it from the content store.
    """
    from .vector import LocalVectorIndex, PineconeIndex

    config = load_config()
    if config.vector.backend != "pinecone":
        return LocalVectorIndex()
    if not config.vector.api_key:
        raise ConfigError("PINECONE_API_KEY is not set")
    return PineconeIndex(
        api_key=config.vector.api_key,
        index_name=config.vector.index_name,
        host=config.vector.host,
        namespace=config.vector.namespace,
    )


def _prefetched_lookup(store, recommendations, exclude_id: Optional[str] = None):
    """Query catalog candidates for every recommendation up front.

    Store queries block, so they run before the processor's event loop
    starts; the returned async lookup only reads the prefetched lists.
    """
    candidates = {}
    for recommendation in recommendations:
        if recommendation.title not in candidates:
            candidates[recommendation.title] = [
                record for record in store.find_by_title(recommendation.title)
                if record.id != exclude_id
            ]

    async def lookup(recommendation):
        return candidates.get(recommendation.title, [])

    return lookup


# ============================================================================
# Core Commands
# ============================================================================

@app.command()
@handle_errors
def init(ctx: typer.Context):
    """
    Initialize the content database.

    Example:
        reelmatch --database ~/movies init
    """
    from .db import database_url

    target = _database_target(ctx)
    with _open_session(ctx):
        pass
    console.print("[green]✓ Database initialized[/green]")
    console.print(f"  URL: {database_url(target)}")
    console.print("  Use 'reelmatch import' to add content")


@app.command(name="import")
@handle_errors
def import_content(
    ctx: typer.Context,
    json_file: Path = typer.Argument(..., help="JSON file with OMDB, TMDB or reelmatch items"),
    media_type: Optional[str] = typer.Option(None, "--type", "-t", help="Media type for items that don't say (movie, series)"),
    compute: bool = typer.Option(False, "--compute/--no-compute", help="Compute similarities for imported items"),
):
    """
    Import content items from a JSON file.

    Accepts a single item, a list, an OMDB search response or a TMDB
    results page.

    Examples:
        reelmatch import movies.json
        reelmatch import tmdb_popular.json --type movie --compute
    """
    from .records import records_from_payload
    from .services import ContentStore, SimilarityService

    if not json_file.exists():
        raise FileNotFoundError(str(json_file))

    with open(json_file, 'r', encoding='utf-8') as f:
        payload = json.load(f)
    records = records_from_payload(payload, media_type)

    if not records:
        console.print("[yellow]No importable items found[/yellow]")
        return

    with _open_session(ctx) as session:
        store = ContentStore(session)
        created = updated = 0
        with Progress() as progress:
            task = progress.add_task("[cyan]Importing...", total=len(records))
            for record in records:
                if store.upsert_content(record):
                    created += 1
                else:
                    updated += 1
                progress.advance(task)

        console.print(f"[green]✓ Imported {len(records)} items ({created} new, {updated} updated)[/green]")

        if compute:
            config = load_config()
            service = SimilarityService(
                session,
                threshold=config.similarity.threshold,
                batch_size=config.similarity.batch_size,
            )
            stored = 0
            for record in records:
                stored += service.compute_for_content(record.id).persisted
            console.print(f"[green]✓ Stored {stored} similarity edges[/green]")


@similarity_app.command(name="compute")
@handle_errors
def similarity_compute(
    ctx: typer.Context,
    content_id: Optional[str] = typer.Option(None, "--content-id", "-c", help="Compute edges for one item"),
    all_items: bool = typer.Option(False, "--all", help="Recompute edges for every pair"),
    threshold: Optional[float] = typer.Option(None, "--threshold", help="Minimum score stored (exclusive)"),
):
    """
    Compute similarity edges.

    Examples:
        reelmatch similarity compute --content-id tt0133093
        reelmatch similarity compute --all
    """
    from .services import SimilarityService

    if bool(content_id) == all_items:
        raise ValueError("Pass exactly one of --content-id or --all")

    config = load_config()
    with _open_session(ctx) as session:
        service = SimilarityService(
            session,
            threshold=config.similarity.threshold if threshold is None else threshold,
            batch_size=config.similarity.batch_size,
        )

        with Progress() as progress:
            task = progress.add_task("[cyan]Computing similarities...", total=None)
            if content_id:
                result = service.compute_for_content(content_id)
            else:
                result = service.recalculate_all()
            progress.update(task, completed=True)

    console.print(f"[green]✓ {result.persisted} edges stored[/green] ({result.emitted} above threshold)")
    if result.failed_batches:
        console.print(f"[yellow]{result.failed_batches} batches failed:[/yellow]")
        for error in result.errors:
            console.print(f"  • {error}")
        raise typer.Exit(code=1)


@app.command(name="similar")
@handle_errors
def find_similar(
    ctx: typer.Context,
    content_id: str = typer.Argument(..., help="Content id to find similar items for"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of similar items to return"),
    show_scores: bool = typer.Option(True, "--show-scores/--hide-scores", help="Show similarity scores"),
):
    """
    List items similar to the given one.

    Uses stored similarity edges, merged with matches from the configured
    vector index. The local index is built from the stored items on each
    run; vector matches at or below the similarity threshold are ignored.

    Example:
        reelmatch similar tt0133093 --limit 5
    """
    from .services import ContentStore, RecommendationService
    from .vector import LocalVectorIndex

    config = load_config()
    index = _build_index()

    async def run():
        service = RecommendationService(session, index=index, min_score=config.similarity.threshold)
        async with index:
            if isinstance(index, LocalVectorIndex):
                await service.index_content(store.get_all())
            return await service.similar_content(content_id, limit=limit)

    with _open_session(ctx) as session:
        store = ContentStore(session)
        source = store.get_by_id(content_id)
        if source is None:
            raise ContentNotFoundError(content_id)

        console.print(f"\n[bold]Items similar to:[/bold]")
        console.print(f"  {source.title} [dim]({source.year or '?'})[/dim]\n")

        results = asyncio.run(run())

    if not results:
        console.print("[yellow]No similar items found[/yellow]")
        console.print("[dim]Run 'reelmatch similarity compute' first[/dim]")
        return

    table = Table(title=f"Top {len(results)} Similar Items")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="green")
    table.add_column("Year", justify="center", style="yellow")
    if show_scores:
        table.add_column("Score", justify="right", style="magenta")
    table.add_column("Source", style="dim")

    for item in results:
        row = [item.record.id, item.record.title, item.record.year or ""]
        if show_scores:
            row.append(f"{item.score:.3f}")
        row.append(item.source)
        table.add_row(*row)

    console.print(table)


@app.command()
@handle_errors
def score(
    ctx: typer.Context,
    first_id: str = typer.Argument(..., help="First content id"),
    second_id: str = typer.Argument(..., help="Second content id"),
):
    """
    Show the attribute similarity of two items, factor by factor.

    Example:
        reelmatch score tt0133093 tt0234215
    """
    from .services import ContentStore
    from .similarity import default_scorer

    with _open_session(ctx) as session:
        store = ContentStore(session)
        first = store.get_by_id(first_id)
        if first is None:
            raise ContentNotFoundError(first_id)
        second = store.get_by_id(second_id)
        if second is None:
            raise ContentNotFoundError(second_id)

    scorer = default_scorer()
    breakdown = scorer.explain(first, second)

    table = Table(title=f"{first.title} vs {second.title}")
    table.add_column("Factor", style="cyan")
    table.add_column("Points", justify="right", style="magenta")
    table.add_column("Max", justify="right", style="dim")

    for feature in scorer.features:
        points = breakdown.get(feature.name)
        table.add_row(
            feature.name,
            "-" if points is None else f"{points:.3f}",
            f"{feature.weight:g}",
        )

    console.print(table)
    console.print(f"[bold]Similarity:[/bold] {scorer.similarity(first, second):.3f}")


@app.command()
@handle_errors
def feedback(
    ctx: typer.Context,
    content_id: str = typer.Argument(..., help="Item the user reacted to"),
    positive: bool = typer.Option(..., "--positive/--negative", help="Thumbs up or down"),
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Item whose recommendations included content_id"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="User id (default: anonymous)"),
):
    """
    Record feedback on a recommendation.

    With --source, the similarity of source -> content is nudged by 0.1.

    Example:
        reelmatch feedback tt0234215 --positive --source tt0133093
    """
    from .services import FeedbackService

    with _open_session(ctx) as session:
        result = FeedbackService(session).record_feedback(
            content_id, positive, user_id=user, source_content_id=source
        )

    console.print(f"[green]✓ Feedback recorded[/green] (#{result.feedback_id})")
    if result.edge_updated:
        previous = "none" if result.previous_score is None else f"{result.previous_score:.2f}"
        console.print(f"  Similarity {source} -> {content_id}: {previous} -> {result.new_score:.2f}")
    elif source:
        console.print("[yellow]Similarity score was not updated (see log)[/yellow]")


@app.command()
@handle_errors
def match(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Title to look up"),
    year: Optional[str] = typer.Option(None, "--year", "-y", help="Release year"),
    synopsis: Optional[str] = typer.Option(None, "--synopsis", help="Short plot description"),
    use_ai: bool = typer.Option(False, "--ai", help="Ask Gemini to pick among the candidates"),
    limit: int = typer.Option(5, "--limit", "-n", help="Number of ranked candidates to show"),
):
    """
    Find the stored item that best matches a title.

    Examples:
        reelmatch match "The Matrix" --year 1999
        reelmatch match "Heat" --ai
    """
    from .records import Recommendation
    from .services import ContentStore, MatchingService
    from .similarity import BestMatchSelector

    query = Recommendation(title=title, year=year, synopsis=synopsis)

    with _open_session(ctx) as session:
        candidates = ContentStore(session).find_by_title(title)

    if not candidates:
        console.print(f"[yellow]No stored items resemble '{title}'[/yellow]")
        raise typer.Exit(code=1)

    selector = BestMatchSelector()
    ranked = selector.rank(query, candidates)

    if use_ai:
        from .ai import AIContentMatcher

        async def run():
            async with _build_provider() as provider:
                service = MatchingService(AIContentMatcher(provider), selector)
                return await service.match_recommendation(query, candidates)

        best = asyncio.run(run())
    else:
        best = ranked[0].record

    table = Table(title=f"Candidates for '{title}'")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="green")
    table.add_column("Year", justify="center", style="yellow")
    table.add_column("Score", justify="right", style="magenta")

    for candidate in ranked[:limit]:
        marker = " ✓" if best is not None and candidate.record.id == best.id else ""
        table.add_row(
            candidate.record.id,
            candidate.record.title + marker,
            candidate.record.year or "",
            f"{candidate.score:.3f}",
        )

    console.print(table)
    if best is not None:
        console.print(f"[bold]Best match:[/bold] {best.title} ({best.id})")


@app.command()
@handle_errors
def recommend(
    ctx: typer.Context,
    content_id: str = typer.Argument(..., help="Content id to get AI recommendations for"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of titles to ask for"),
):
    """
    Ask Gemini for similar titles and resolve them to stored items.

    Example:
        reelmatch recommend tt0133093 --limit 5
    """
    from .ai import AIContentMatcher, RecommendationGenerator
    from .services import ContentStore, MatchingService, RecommendationProcessor

    config = load_config()

    with _open_session(ctx) as session:
        store = ContentStore(session)
        source = store.get_by_id(content_id)
        if source is None:
            raise ContentNotFoundError(content_id)

        async def suggest():
            async with _build_provider() as provider:
                generator = RecommendationGenerator(provider)
                return await generator.similar_titles(
                    source.title, source.plot, source.media_type, limit=limit
                )

        async def resolve(lookup):
            async with _build_provider() as provider:
                processor = RecommendationProcessor(
                    MatchingService(AIContentMatcher(provider)),
                    concurrency=config.processing.concurrency,
                    batch_delay=config.processing.batch_delay,
                    timeout=config.processing.timeout,
                )
                return await processor.process(recommendations, lookup)

        with Progress() as progress_bar:
            task = progress_bar.add_task("[cyan]Asking Gemini...", total=None)
            recommendations = asyncio.run(suggest())
            lookup = _prefetched_lookup(store, recommendations, exclude_id=content_id)
            progress_bar.update(task, description="[cyan]Matching suggestions...")
            matched, progress = asyncio.run(resolve(lookup))
            progress_bar.update(task, completed=True)

    console.print(f"Gemini suggested {len(recommendations)} titles; "
                  f"{progress.succeeded} matched stored items")

    if not matched:
        console.print("[yellow]None of the suggestions are in the database[/yellow]")
        return

    table = Table(title=f"Recommended for {source.title}")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="green")
    table.add_column("Year", justify="center", style="yellow")
    for record in matched:
        table.add_row(record.id, record.title, record.year or "")
    console.print(table)


@app.command()
@handle_errors
def index(ctx: typer.Context):
    """
    Push every stored item into the configured vector index.

    Example:
        PINECONE_API_KEY=... reelmatch config --vector-backend pinecone && reelmatch index
    """
    from .services import ContentStore, RecommendationService

    from .vector import PineconeIndex

    vector_index = _build_index()
    if not isinstance(vector_index, PineconeIndex):
        raise ConfigError("No remote vector index configured (use --vector-backend pinecone)")

    with _open_session(ctx) as session:
        records = ContentStore(session).get_all()

        async def run():
            async with vector_index:
                return await RecommendationService(session, vector_index).index_content(records)

        indexed = asyncio.run(run())

    console.print(f"[green]✓ Indexed {indexed}/{len(records)} items into {vector_index.name}[/green]")


@app.command()
@handle_errors
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    set_model: Optional[str] = typer.Option(None, "--llm-model", help="Set Gemini model name"),
    set_api_key: Optional[str] = typer.Option(None, "--llm-api-key", help="Set Gemini API key"),
    set_temperature: Optional[float] = typer.Option(None, "--llm-temperature", help="Set temperature (0.0-1.0)"),
    set_max_tokens: Optional[int] = typer.Option(None, "--llm-max-tokens", help="Set maximum output tokens"),
    set_backend: Optional[str] = typer.Option(None, "--vector-backend", help="Set vector backend (local, pinecone)"),
    set_index_name: Optional[str] = typer.Option(None, "--vector-index", help="Set Pinecone index name"),
    set_vector_host: Optional[str] = typer.Option(None, "--vector-host", help="Set Pinecone index host"),
    set_database: Optional[str] = typer.Option(None, "--database-url", help="Set default database URL or path"),
    set_threshold: Optional[float] = typer.Option(None, "--threshold", help="Set similarity threshold"),
    set_batch_size: Optional[int] = typer.Option(None, "--batch-size", help="Set edge batch size"),
    set_concurrency: Optional[int] = typer.Option(None, "--concurrency", help="Set recommendation concurrency"),
):
    """
    View or edit reelmatch configuration.

    Configuration is stored at ~/.config/reelmatch/config.json (or
    ~/.reelmatch/config.json). Environment variables such as
    GEMINI_API_KEY override file values.

    Examples:
        reelmatch config --show
        reelmatch config --llm-model gemini-2.0-flash --threshold 0.4
    """
    has_settings = any(value is not None for value in (
        set_model, set_api_key, set_temperature, set_max_tokens,
        set_backend, set_index_name, set_vector_host, set_database,
        set_threshold, set_batch_size, set_concurrency,
    ))

    # Handle --show or no args (default to show)
    if show or not has_settings:
        config = load_config()
        config_path = get_config_path()

        console.print(f"\n[bold]reelmatch Configuration[/bold]")
        console.print(f"[dim]Location: {config_path}[/dim]\n")

        console.print("[bold cyan]LLM Settings:[/bold cyan]")
        console.print(f"  Provider:    {config.llm.provider}")
        console.print(f"  Model:       {config.llm.model}")
        console.print(f"  Temperature: {config.llm.temperature}")
        console.print(f"  Max Tokens:  {config.llm.max_tokens}")
        console.print(f"  API Key:     {_mask(config.llm.api_key)}")

        console.print("\n[bold cyan]Vector Settings:[/bold cyan]")
        console.print(f"  Backend:     {config.vector.backend}")
        console.print(f"  Index:       {config.vector.index_name}")
        console.print(f"  Host:        {config.vector.host or '[dim]auto[/dim]'}")
        console.print(f"  API Key:     {_mask(config.vector.api_key)}")

        console.print("\n[bold cyan]Database Settings:[/bold cyan]")
        console.print(f"  URL:         {config.database.url or DEFAULT_DATA_DIR}")

        console.print("\n[bold cyan]Similarity Settings:[/bold cyan]")
        console.print(f"  Threshold:   {config.similarity.threshold}")
        console.print(f"  Batch Size:  {config.similarity.batch_size}")

        console.print("\n[bold cyan]Processing Settings:[/bold cyan]")
        console.print(f"  Concurrency: {config.processing.concurrency}")
        console.print(f"  Batch Delay: {config.processing.batch_delay}s")
        console.print(f"  Timeout:     {config.processing.timeout}s\n")
        return

    update_config(
        llm_model=set_model,
        llm_api_key=set_api_key,
        llm_temperature=set_temperature,
        llm_max_tokens=set_max_tokens,
        vector_backend=set_backend,
        vector_index_name=set_index_name,
        vector_host=set_vector_host,
        database_url=set_database,
        similarity_threshold=set_threshold,
        similarity_batch_size=set_batch_size,
        processing_concurrency=set_concurrency,
    )
    console.print("[green]✓ Configuration updated![/green]")
    console.print("[dim]Use 'reelmatch config --show' to view current settings[/dim]")


def _mask(secret: Optional[str]) -> str:
    if not secret:
        return "[dim]not set[/dim]"
    return f"{secret[:4]}...{secret[-4:]}"


if __name__ == "__main__":
    app()
