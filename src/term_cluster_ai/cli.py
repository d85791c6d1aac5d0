"""
CLI for term-cluster-ai.

Provides commands for glossary management and search, document
clustering, cluster summaries, and the processing log.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import NoReturn

# Suppress HuggingFace tokenizers parallelism warning when forking processes
os.environ.setdefault("TOKENIZERS_PARALLELISM", "false")

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from term_cluster_ai.clustering import (
    ClusteringService,
    ClusterSummarizer,
    DocumentClusteringEngine,
    DocumentEmbeddingService,
    LLMSummarizer,
)
from term_cluster_ai.config import Settings, create_default_config, load_config
from term_cluster_ai.database import Database, Document, GlossaryEntry
from term_cluster_ai.embeddings import EmbeddingProvider, create_embedding_provider
from term_cluster_ai.errors import TermClusterError
from term_cluster_ai.glossary import GlossaryEmbeddingIndexer, GlossaryMatch, HybridGlossaryMatcher
from term_cluster_ai.llm import create_llm_provider
from term_cluster_ai.scope import SearchScope
from term_cluster_ai.vector_index import DuckDBVectorIndex

app = typer.Typer(
    name="term-cluster",
    help="Hybrid glossary matching and document clustering for translation projects.",
    add_completion=False,
)

console = Console()


def get_settings(config_path: Path | None = None) -> Settings:
    """Load settings from config file or defaults."""
    if config_path and config_path.exists():
        return load_config(config_path)
    return load_config()


def get_database(settings: Settings) -> Database:
    """Get database instance."""
    return Database(settings.paths.database_path, log_level=settings.logging.level)


def get_embedder(settings: Settings) -> EmbeddingProvider | None:
    """Create the configured embedding provider (None when disabled)."""
    return create_embedding_provider(settings.embedding)


def get_matcher(settings: Settings, db: Database) -> HybridGlossaryMatcher:
    """Build the hybrid glossary matcher."""
    return HybridGlossaryMatcher(
        db,
        get_embedder(settings),
        DuckDBVectorIndex(db),
        min_similarity=settings.glossary.min_similarity,
        candidate_limit=settings.glossary.semantic_candidate_limit,
        semantic_timeout=settings.embedding.timeout_seconds,
    )


def get_cluster_summarizer(settings: Settings, db: Database) -> ClusterSummarizer:
    """Build the cluster summarizer from the summarization settings."""
    cfg = settings.summarization
    provider = create_llm_provider(cfg)
    summarizer = (
        LLMSummarizer(
            provider,
            temperature=cfg.temperature,
            max_tokens=cfg.max_tokens,
            max_input_chars=cfg.max_input_chars,
        )
        if provider is not None
        else None
    )
    return ClusterSummarizer(
        db,
        summarizer,
        max_documents=cfg.max_documents,
        segments_per_document=cfg.segments_per_document,
        glossary_context_limit=cfg.glossary_context_limit,
        max_input_chars=cfg.max_input_chars,
    )


def get_engine(settings: Settings, db: Database) -> DocumentClusteringEngine:
    """Build the clustering engine."""
    return DocumentClusteringEngine(
        db,
        DuckDBVectorIndex(db),
        join_threshold=settings.clustering.join_threshold,
        neighbor_limit=settings.clustering.neighbor_limit,
    )


def get_clustering_service(settings: Settings, db: Database) -> ClusteringService:
    """Build the on-demand clustering service."""
    embeddings = DocumentEmbeddingService(
        db,
        get_embedder(settings),
        max_text_length=settings.embedding.max_document_text_length,
    )
    return ClusteringService(
        db,
        embeddings,
        get_engine(settings, db),
        get_cluster_summarizer(settings, db),
        auto_summarize=settings.clustering.auto_summarize,
    )


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1) from None


def _matches_table(title: str, matches: list[GlossaryMatch]) -> Table:
    table = Table(title=title)
    table.add_column("Source", style="cyan")
    table.add_column("Target", style="green")
    table.add_column("Locales", style="dim")
    table.add_column("Method", style="magenta")
    table.add_column("Similarity", justify="right")
    table.add_column("Forbidden")

    method_style = {"exact": "green", "hybrid": "blue", "semantic": "yellow"}
    for match in matches:
        method = match.match_method.value
        style = method_style.get(method, "white")
        table.add_row(
            match.source_term,
            match.target_term,
            f"{match.source_locale} -> {match.target_locale}",
            f"[{style}]{method}[/{style}]",
            f"{match.similarity:.3f}",
            "[red]yes[/red]" if match.is_forbidden else "",
        )
    return table


# ==================== Setup ====================


@app.command()
def init(
    output_path: Path = typer.Option(
        Path("config.yaml"),
        "--output",
        "-o",
        help="Output path for config file",
    ),
) -> None:
    """Generate a default configuration file."""
    if output_path.exists():
        overwrite = typer.confirm(f"{output_path} already exists. Overwrite?")
        if not overwrite:
            raise typer.Abort()

    create_default_config(output_path)
    console.print(f"[green]Created config file: {output_path}[/green]")
    console.print("\nSet your API keys, then add glossary entries:")
    console.print('  term-cluster glossary-add "server" "serveur" --from en --to fr')


# ==================== Glossary ====================


@app.command("glossary-add")
def glossary_add(
    source_term: str = typer.Argument(..., help="Source term"),
    target_term: str = typer.Argument(..., help="Target term"),
    source_locale: str = typer.Option("en", "--from", help="Source locale"),
    target_locale: str = typer.Option(..., "--to", help="Target locale"),
    project: str | None = typer.Option(None, "--project", "-p", help="Project (global if unset)"),
    forbidden: bool = typer.Option(False, "--forbidden", help="Mark the term as forbidden"),
    notes: str | None = typer.Option(None, "--notes", help="Usage notes"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Add a glossary entry."""
    if not source_term.strip() or not target_term.strip():
        console.print("[red]Source and target terms cannot be empty[/red]")
        raise typer.Exit(1)

    settings = get_settings(config)
    db = get_database(settings)

    entry = GlossaryEntry(
        source_term=source_term.strip(),
        target_term=target_term.strip(),
        source_locale=source_locale,
        target_locale=target_locale,
        is_forbidden=forbidden,
        project_id=project,
        notes=notes,
    )
    entry_id = db.add_glossary_entry(entry)
    console.print(f"[green]Added entry {entry_id}[/green]")


@app.command("glossary-list")
def glossary_list(
    project: str | None = typer.Option(None, "--project", "-p", help="Project scope"),
    source_locale: str | None = typer.Option(None, "--from", help="Source locale"),
    target_locale: str | None = typer.Option(None, "--to", help="Target locale"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """List glossary entries visible in a scope."""
    settings = get_settings(config)
    db = get_database(settings)

    entries = db.get_glossary_entries(SearchScope(project, source_locale, target_locale))
    if not entries:
        console.print("[yellow]No glossary entries found[/yellow]")
        return

    table = Table(title="Glossary")
    table.add_column("ID", style="dim")
    table.add_column("Source", style="cyan")
    table.add_column("Target", style="green")
    table.add_column("Locales")
    table.add_column("Project")
    table.add_column("Embedded", justify="center")

    for entry in entries[:100]:
        table.add_row(
            entry.id[:8],
            entry.source_term,
            entry.target_term,
            f"{entry.source_locale} -> {entry.target_locale}",
            entry.project_id or "[dim]global[/dim]",
            "[green]yes[/green]" if entry.embedding else "[yellow]no[/yellow]",
        )
    if len(entries) > 100:
        table.add_row("...", "...", "...", "...", "...", "...")

    console.print(table)


@app.command("glossary-embed")
def glossary_embed(
    project: str | None = typer.Option(None, "--project", "-p", help="Only this project"),
    batch_size: int = typer.Option(50, "--batch-size", "-b", help="Entries per batch"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Generate embeddings for glossary entries that have none."""
    settings = get_settings(config)
    db = get_database(settings)
    embedder = get_embedder(settings)
    if embedder is None:
        console.print("[red]Embeddings are disabled (embedding.provider: none)[/red]")
        raise typer.Exit(1)

    indexer = GlossaryEmbeddingIndexer(db, embedder)

    with console.status("Embedding glossary entries..."):
        count = asyncio.run(indexer.generate_missing(project, batch_size=batch_size))

    stats_data = indexer.stats(project)
    console.print(f"[green]Embedded {count} entries[/green]")
    console.print(
        f"Coverage: {stats_data['with_embedding']}/{stats_data['total']} "
        f"({stats_data['coverage']}%) with {stats_data['model']}"
    )


@app.command()
def search(
    text: str = typer.Argument(..., help="Source text to analyse"),
    project: str | None = typer.Option(None, "--project", "-p", help="Project scope"),
    source_locale: str | None = typer.Option(None, "--from", help="Source locale"),
    target_locale: str | None = typer.Option(None, "--to", help="Target locale"),
    min_similarity: float | None = typer.Option(
        None, "--min-similarity", "-m", help="Semantic similarity floor"
    ),
    exact_only: bool = typer.Option(False, "--exact-only", help="Skip semantic search"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Search the glossary for terms in a text."""
    settings = get_settings(config)
    db = get_database(settings)
    matcher = get_matcher(settings, db)

    matches = asyncio.run(
        matcher.search(
            text,
            SearchScope(project, source_locale, target_locale),
            min_similarity=min_similarity,
            use_semantic_search=settings.glossary.use_semantic_search and not exact_only,
        )
    )
    if not matches:
        console.print("[yellow]No glossary terms found[/yellow]")
        return
    console.print(_matches_table("Glossary Matches", matches))


@app.command()
def relevant(
    text: str = typer.Argument(..., help="Source text to analyse"),
    project: str | None = typer.Option(None, "--project", "-p", help="Project scope"),
    source_locale: str | None = typer.Option(None, "--from", help="Source locale"),
    target_locale: str | None = typer.Option(None, "--to", help="Target locale"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show the glossary terms to enforce when translating a text."""
    settings = get_settings(config)
    db = get_database(settings)
    matcher = get_matcher(settings, db)

    matches = asyncio.run(
        matcher.find_relevant(text, SearchScope(project, source_locale, target_locale))
    )
    if not matches:
        console.print("[yellow]No relevant glossary terms[/yellow]")
        return
    console.print(_matches_table("Relevant Terms", matches))

    forbidden = [m for m in matches if m.is_forbidden]
    if forbidden:
        console.print(
            f"[red]{len(forbidden)} forbidden term(s): "
            + ", ".join(m.source_term for m in forbidden)
            + "[/red]"
        )


# ==================== Documents ====================


@app.command("doc-add")
def doc_add(
    file_path: Path = typer.Argument(..., help="Text file, one segment per line"),
    project: str = typer.Option(..., "--project", "-p", help="Project"),
    name: str | None = typer.Option(None, "--name", "-n", help="Document name"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Add a document from a text file."""
    if not file_path.exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        raise typer.Exit(1)

    settings = get_settings(config)
    db = get_database(settings)

    lines = [line.strip() for line in file_path.read_text(encoding="utf-8").splitlines()]
    segments = [line for line in lines if line]

    doc_id = db.add_document(Document(project_id=project, name=name or file_path.name))
    if segments:
        db.add_segments(doc_id, segments)

    console.print(f"[green]Added document {doc_id} with {len(segments)} segments[/green]")


@app.command()
def cluster(
    document_id: str | None = typer.Argument(None, help="Document to cluster"),
    project: str | None = typer.Option(None, "--project", "-p", help="Cluster a whole project"),
    reassign: bool = typer.Option(False, "--reassign", help="Re-run for clustered documents"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Assign one document, or every unclustered document of a project, to clusters."""
    if not document_id and not project:
        console.print("[red]Specify a document ID or --project[/red]")
        raise typer.Exit(1)

    settings = get_settings(config)
    db = get_database(settings)
    service = get_clustering_service(settings, db)

    if document_id:
        try:
            result = asyncio.run(service.cluster_document(document_id, reassign=reassign))
        except TermClusterError as e:
            _fail(e)

        if result.cluster_id is None:
            console.print("[yellow]No clustering action was possible; see logs[/yellow]")
            return
        console.print(f"[green]Document assigned to {result.cluster_id}[/green]")
        if result.summary_error:
            console.print(f"[yellow]Summary not updated: {result.summary_error}[/yellow]")
        return

    assert project is not None
    with console.status(f"Clustering project {project}..."):
        results = asyncio.run(service.cluster_project(project))

    clustered = sum(1 for c in results.values() if c)
    console.print(f"[green]Clustered {clustered} of {len(results)} documents[/green]")


@app.command()
def similar(
    document_id: str = typer.Argument(..., help="Document to compare"),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Max results"),
    min_similarity: float | None = typer.Option(
        None, "--min-similarity", "-m", help="Similarity floor"
    ),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """List documents similar to a document."""
    settings = get_settings(config)
    db = get_database(settings)
    engine = get_engine(settings, db)

    try:
        docs = asyncio.run(
            engine.similar_to_document(
                document_id,
                limit=limit or settings.clustering.similar_documents_limit,
                min_similarity=(
                    min_similarity
                    if min_similarity is not None
                    else settings.clustering.similar_documents_min_similarity
                ),
            )
        )
    except TermClusterError as e:
        _fail(e)

    if not docs:
        console.print("[yellow]No similar documents (is the document embedded?)[/yellow]")
        return

    table = Table(title="Similar Documents")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Similarity", justify="right")
    table.add_column("Cluster", style="magenta")
    for doc in docs:
        table.add_row(doc.document_id[:8], doc.name, f"{doc.similarity:.3f}", doc.cluster_id or "")
    console.print(table)


# ==================== Clusters ====================


@app.command()
def clusters(
    project: str = typer.Option(..., "--project", "-p", help="Project"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """List the clusters of a project."""
    settings = get_settings(config)
    db = get_database(settings)
    engine = get_engine(settings, db)

    cluster_list, unclustered = engine.list_clusters(project)
    if not cluster_list and not unclustered:
        console.print("[yellow]No documents in project[/yellow]")
        return

    table = Table(title=f"Clusters - {project}")
    table.add_column("Cluster", style="magenta")
    table.add_column("Docs", justify="right")
    table.add_column("Summary")
    for info in cluster_list:
        summary = info.cluster_summary or "[dim]none[/dim]"
        table.add_row(info.cluster_id, str(info.document_count), summary[:60])
    console.print(table)

    if unclustered:
        console.print(f"[yellow]{len(unclustered)} unclustered document(s)[/yellow]")


@app.command("cluster-show")
def cluster_show(
    cluster_id: str = typer.Argument(..., help="Cluster ID"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show the members and summary of a cluster."""
    settings = get_settings(config)
    db = get_database(settings)
    engine = get_engine(settings, db)

    try:
        info = engine.get_cluster(cluster_id)
    except TermClusterError as e:
        _fail(e)

    cohesion = f"{info.cohesion:.3f}" if info.cohesion is not None else "n/a"
    console.print(
        Panel(
            f"Project: {info.project_id}\n"
            f"Documents: {info.document_count}\n"
            f"Cohesion: {cohesion}\n\n"
            f"{info.cluster_summary or '[dim]No summary[/dim]'}",
            title=f"[bold]{cluster_id}[/bold]",
            border_style="magenta",
        )
    )

    table = Table(title="Members")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Embedded", justify="center")
    for doc in info.documents:
        table.add_row(doc.id[:8], doc.name, "yes" if doc.has_embedding else "no")
    console.print(table)


@app.command()
def summarize(
    cluster_id: str | None = typer.Argument(None, help="Cluster to summarize"),
    document_id: str | None = typer.Option(None, "--doc", "-d", help="Summarize one document"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Regenerate a cluster summary, or a single document summary."""
    if not cluster_id and not document_id:
        console.print("[red]Specify a cluster ID or --doc[/red]")
        raise typer.Exit(1)

    settings = get_settings(config)
    db = get_database(settings)

    try:
        if document_id:
            summarizer = get_cluster_summarizer(settings, db)
            summary = asyncio.run(summarizer.update_document_summary(document_id))
            title = f"Document {document_id[:8]}"
        else:
            assert cluster_id is not None
            service = get_clustering_service(settings, db)
            summary = asyncio.run(service.regenerate_summary(cluster_id))
            title = cluster_id
    except TermClusterError as e:
        _fail(e)

    console.print(Panel(summary, title=f"[bold]{title}[/bold]", border_style="green"))


@app.command("set-summary")
def set_summary(
    cluster_id: str = typer.Argument(..., help="Cluster ID"),
    text: str = typer.Argument(..., help="Summary text"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Overwrite a cluster summary without summarization."""
    settings = get_settings(config)
    db = get_database(settings)

    try:
        updated = get_cluster_summarizer(settings, db).set_cluster_summary(cluster_id, text)
    except TermClusterError as e:
        _fail(e)
    console.print(f"[green]Summary set on {updated} documents[/green]")


# ==================== Reporting ====================


@app.command()
def stats(
    project: str = typer.Option(..., "--project", "-p", help="Project"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """Show clustering and glossary statistics."""
    settings = get_settings(config)
    db = get_database(settings)

    cluster_stats = db.get_clustering_stats(project)
    glossary_stats = db.get_glossary_embedding_stats(project)

    console.print(
        Panel(
            f"""
Documents: {cluster_stats["total_documents"]}
  - With embeddings: {cluster_stats["documents_with_embeddings"]}
  - With summaries: {cluster_stats["documents_with_summaries"]}
  - Clustered: {cluster_stats["clustered_documents"]} ({cluster_stats["clustering_progress"]}%)

Clusters: {cluster_stats["total_clusters"]}

Project glossary entries: {glossary_stats["total"]}
  - Embedded: {glossary_stats["with_embedding"]} ({glossary_stats["coverage"]}%)
        """.strip(),
            title=f"Statistics - {project}",
        )
    )


@app.command()
def logs(
    document_id: str | None = typer.Option(None, "--doc", "-d", help="Filter by document"),
    level: str | None = typer.Option(None, "--level", "-l", help="Filter by level"),
    stage: str | None = typer.Option(None, "--stage", "-s", help="Filter by stage"),
    limit: int = typer.Option(50, "--limit", "-n", help="Max entries to show"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Config file"),
) -> None:
    """View processing logs."""
    settings = get_settings(config)
    db = get_database(settings)

    entries = db.get_logs(level=level, stage=stage, document_id=document_id, limit=limit)
    if not entries:
        console.print("[yellow]No log entries found[/yellow]")
        return

    table = Table(title="Processing Logs")
    table.add_column("Time", style="dim")
    table.add_column("Level")
    table.add_column("Stage", style="cyan")
    table.add_column("Message")
    table.add_column("Doc", style="dim")

    for entry in entries:
        level_style = {
            "DEBUG": "dim",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
        }.get(entry["level"], "white")

        table.add_row(
            str(entry["created_at"])[:19],
            f"[{level_style}]{entry['level']}[/{level_style}]",
            entry["stage"] or "",
            (entry["message"] or "")[:60],
            (entry["document_id"] or "")[:8],
        )

    console.print(table)


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
