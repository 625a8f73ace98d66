"""Command-line interface for the identity claim system using Typer and Rich."""

import asyncio
import json
import sys
import time
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from identity_system.config.logging import get_logger
from identity_system.config.settings import settings
from identity_system.data_management import ClaimStore
from identity_system.data_management.schemas import EvidenceItem

app = typer.Typer(
    help="Identity Claim System CLI - evidence synthesis and claim quality audits",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

DEFAULT_STORE = "data/claims.json"


def _load_evidence(path: Path) -> tuple[Optional[str], List[EvidenceItem]]:
    """Read a list of evidence dicts, or {"document_id": ..., "evidence": [...]}."""
    with open(path, "r") as f:
        data = json.load(f)

    if isinstance(data, dict):
        return data.get("document_id"), [
            EvidenceItem.model_validate(e) for e in data.get("evidence", [])
        ]
    return None, [EvidenceItem.model_validate(e) for e in data]


async def _embed_missing(items: List[EvidenceItem], embedder) -> List[EvidenceItem]:
    embedded = []
    for item in items:
        if item.embedding:
            embedded.append(item)
        else:
            vector = await embedder.embed(item.text)
            embedded.append(item.model_copy(update={"embedding": vector}))
    return embedded


@app.command()
def status(
    store: str = typer.Option(DEFAULT_STORE, help="Claim store JSON file"),
) -> None:
    """
    Display configuration and claim store statistics.
    """
    logger.info("Displaying system status")

    table = Table(title="Identity System Status", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    python_version = f"Python {sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    table.add_row("Environment", "✓ Ready", python_version)

    api_status = "✓ Configured" if settings.gemini_api_key else "⚠ Not Configured"
    table.add_row("Gemini API", api_status, f"{settings.gemini_model} / {settings.embedding_model}")

    table.add_row(
        "Synthesis",
        "✓ Active",
        f"Candidates: {settings.candidate_count}, "
        f"Concurrency: {settings.synthesis_concurrency}, "
        f"Retries: {settings.oracle_max_attempts}",
    )
    scoring = "weighted" if settings.weighted_confidence else "strength-only"
    table.add_row(
        "Audit",
        "✓ Active",
        f"Duplicate threshold: {settings.duplicate_threshold}, "
        f"Review sample: {settings.max_claims_for_eval}, Scoring: {scoring}",
    )
    table.add_row("Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}")

    stats = asyncio.run(ClaimStore(persistence_path=store).get_stats())
    table.add_row(
        "Claim Store",
        "✓ Loaded" if Path(store).exists() else "○ Empty",
        f"{stats['total_claims']} claims, {stats['total_links']} links, "
        f"{stats['open_issues']} open issues",
    )

    console.print(table)


@app.command()
def synthesize(
    evidence_file: Path = typer.Argument(..., exists=True, readable=True, help="Evidence JSON file"),
    user: str = typer.Option(..., "--user", "-u", help="Owner of the claims"),
    store: str = typer.Option(DEFAULT_STORE, help="Claim store JSON file"),
    audit: bool = typer.Option(True, help="Audit claims after synthesis"),
) -> None:
    """
    Synthesize evidence from a JSON file into a user's claims.
    """
    from identity_system.llm.gemini_client import GeminiClient
    from identity_system.pipeline import SynthesisPipeline

    logger.info(f"Synthesize command invoked for {evidence_file}", user_id=user)

    try:
        document_id, items = _load_evidence(evidence_file)
    except (OSError, ValueError) as e:
        console.print(f"[red]✗[/red] Could not read evidence: {e}")
        raise typer.Exit(1)

    try:
        client = GeminiClient()
    except ValueError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    claim_store = ClaimStore(persistence_path=store)
    pipeline = SynthesisPipeline(claim_store=claim_store, oracle=client, embedder=client)

    async def on_progress(current: int, total: int) -> None:
        console.print(f"[dim]Processed {current}/{total}[/dim]")

    async def on_claim(update) -> None:
        marker = "[green]+[/green]" if update.action == "created" else "[cyan]↑[/cyan]"
        console.print(f"{marker} {update.label}")

    async def run() -> dict:
        embedded = await _embed_missing(items, client)
        if audit:
            return await pipeline.process_document(
                user, embedded, document_id, on_progress, on_claim
            )
        result = await pipeline.run_synthesis(user, embedded, on_progress, on_claim)
        return result.model_dump()

    start_time = time.time()
    stats = asyncio.run(run())
    elapsed = time.time() - start_time

    console.print(Panel(
        "\n".join(f"{key}: {value}" for key, value in stats.items()),
        title="Synthesis Complete",
        border_style="green",
    ))
    console.print(f"[dim]{len(items)} evidence items in {elapsed:.2f}s[/dim]")


@app.command("audit")
def audit_claims(
    user: str = typer.Option(..., "--user", "-u", help="Owner of the claims"),
    store: str = typer.Option(DEFAULT_STORE, help="Claim store JSON file"),
    ai_review: bool = typer.Option(False, help="Include the Gemini grounding review"),
    document: Optional[str] = typer.Option(None, help="Document id to record on issues"),
) -> None:
    """
    Run duplicate, missing-field and (optionally) grounding checks.
    """
    from identity_system.agents.sifters.quality import (
        ClaimAuditor,
        ClaimGroundingEvaluator,
    )

    evaluator = None
    if ai_review:
        from identity_system.llm.gemini_client import GeminiClient

        try:
            evaluator = ClaimGroundingEvaluator(GeminiClient())
        except ValueError as e:
            console.print(f"[red]✗[/red] {e}")
            raise typer.Exit(1)

    auditor = ClaimAuditor(ClaimStore(persistence_path=store), grounding_evaluator=evaluator)
    result = asyncio.run(auditor.run_claim_eval(user, document_id=document))

    console.print(
        f"[green]✓[/green] Audit complete: {result.issues_found} issues found, "
        f"{result.issues_stored} stored"
    )


@app.command()
def issues(
    user: str = typer.Option(..., "--user", "-u", help="Owner of the claims"),
    store: str = typer.Option(DEFAULT_STORE, help="Claim store JSON file"),
    all_issues: bool = typer.Option(False, "--all", help="Include dismissed issues"),
) -> None:
    """
    List quality issues on a user's claims.
    """
    claim_store = ClaimStore(persistence_path=store)

    async def load():
        found = await claim_store.list_issues(user_id=user, include_dismissed=all_issues)
        claims = {c.id: c for c in await claim_store.list_claims(user)}
        return found, claims

    found, claims = asyncio.run(load())

    if not found:
        console.print("[green]No issues found[/green]")
        return

    table = Table(title=f"Claim Issues ({user})", show_header=True, header_style="bold magenta")
    table.add_column("Issue", style="dim", width=10)
    table.add_column("Claim", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("Severity")
    table.add_column("Message")

    for issue in found:
        claim = claims.get(issue.claim_id)
        severity = (
            "[red]error[/red]" if issue.severity.value == "error" else "[yellow]warning[/yellow]"
        )
        if issue.is_dismissed:
            severity += " [dim](dismissed)[/dim]"
        table.add_row(
            issue.id[:8],
            claim.label if claim and claim.label else issue.claim_id[:8],
            issue.issue_type.value,
            severity,
            issue.message,
        )

    console.print(table)


@app.command()
def dismiss(
    issue_id: str = typer.Argument(..., help="Issue id (full id or unique prefix)"),
    store: str = typer.Option(DEFAULT_STORE, help="Claim store JSON file"),
) -> None:
    """
    Dismiss an issue so later audits do not flag it again.
    """
    claim_store = ClaimStore(persistence_path=store)

    async def run():
        candidates = [
            i for i in await claim_store.list_issues(include_dismissed=True)
            if i.id.startswith(issue_id)
        ]
        if len(candidates) != 1:
            return None, len(candidates)
        return await claim_store.dismiss_issue(candidates[0].id), 1

    dismissed, matches = asyncio.run(run())

    if dismissed is None:
        reason = "no issue matches" if matches == 0 else f"{matches} issues match"
        console.print(f"[red]✗[/red] Cannot dismiss '{issue_id}': {reason}")
        raise typer.Exit(1)

    logger.info(f"Dismissed issue {dismissed.id}")
    console.print(f"[green]✓[/green] Dismissed: {dismissed.message}")


@app.command()
def test_oracle(
    prompt: str = typer.Option(None, prompt="Enter test prompt"),
) -> None:
    """
    Test the Gemini oracle connection with a simple prompt.
    """
    from identity_system.llm.gemini_client import GeminiClient

    logger.info("Testing Gemini API connection")

    try:
        client = GeminiClient()
        console.print("\n[bold cyan]Testing Gemini API[/bold cyan]")
        console.print(f"[dim]Token count: {client.count_tokens(prompt)}[/dim]")

        start_time = time.time()
        response = asyncio.run(client.complete(prompt))
        elapsed = time.time() - start_time

        display_response = response[:500]
        if len(response) > 500:
            display_response += "..."

        console.print(Panel(display_response, title="Gemini Response", border_style="green"))
        console.print(f"\n[green]✓[/green] Response generated in {elapsed:.2f}s")

    except Exception as e:
        console.print(f"\n[red]✗[/red] Error: {e}")
        logger.error(f"Gemini API test failed: {e}")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Display version information."""
    console.print("[bold]Identity Claim System[/bold]")
    console.print("Version: 0.1.0")


if __name__ == "__main__":
    app()
