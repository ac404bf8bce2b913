"""mdcite CLI - Click command definition and main entry point."""

from __future__ import annotations

from pathlib import Path

import click
import structlog
from rich.console import Console
from rich.panel import Panel

from mdcite._logging import configure_logging
from mdcite.citations import cite_answer, format_references
from mdcite.errors import MdciteError
from mdcite.fetch import read_source
from mdcite.hits import RetrievalHit, load_hits
from mdcite.links import extract_markdown_links
from mdcite.output import dumps_json, resolve_output_path, save_json, save_markdown
from mdcite.utils import source_to_slug

console = Console(stderr=True)
logger = structlog.get_logger(__name__)


@click.command(context_settings={"auto_envvar_prefix": "MDCITE"})
@click.argument("source")
@click.option(
    "-m", "--mode",
    type=click.Choice(["rewrite", "links", "citations"]),
    default="rewrite",
    show_default=True,
    help="rewrite: markdown with [n] markers; links: extracted links as JSON; "
         "citations: rewritten text plus citation list as JSON.",
)
@click.option("--hits", "hits_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Retrieval hits JSON used for citation snippets.")
@click.option("--refs", is_flag=True,
              help="Append a numbered references block (rewrite mode).")
@click.option("-o", "--output", "output_path", type=click.Path(), default=None,
              help="Output file or directory. Omit for stdout.")
@click.option("-f", "--filename", default=None, help="Custom filename (no extension)")
@click.option("--timeout", default=30, show_default=True,
              help="Fetch timeout in seconds for URL sources")
@click.option("-v", "--verbose", is_flag=True, help="Verbose progress output")
@click.option("--log-json", is_flag=True, help="Emit logs as JSON lines on stderr")
@click.version_option(package_name="mdcite")
def main(
    source: str,
    mode: str,
    hits_path: str | None,
    refs: bool,
    output_path: str | None,
    filename: str | None,
    timeout: int,
    verbose: bool,
    log_json: bool,
):
    """Number the links of a markdown document as citations.

    SOURCE can be a local file, a URL (http/https) or "-" for stdin.

    \b
    Examples:
        mdcite answer.md                          # [n] markers to stdout
        mdcite answer.md --refs                   # plus a references block
        mdcite answer.md -m links                 # extracted links as JSON
        mdcite answer.md -m citations --hits hits.json -o out/
        cat answer.md | mdcite -
    """
    configure_logging(verbose=verbose, log_json=log_json)

    try:
        markdown = read_source(source, timeout=timeout)
        hits = _load_hits_file(Path(hits_path)) if hits_path else []
    except MdciteError as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        console.print(Panel(
            f"[bold]mdcite - Markdown link citations[/bold]\n{source}\nMode: {mode}",
            expand=False,
        ))
    logger.debug("source_loaded", source=source, chars=len(markdown), hits=len(hits))

    slug = filename or source_to_slug(source)

    if mode == "links":
        links = [link.to_dict() for link in extract_markdown_links(markdown)]
        _emit_json(links, output_path, slug)
        return

    answer = cite_answer(markdown, hits)

    if mode == "citations":
        _emit_json(answer.to_dict(), output_path, slug)
        return

    text = answer.text
    if refs:
        references = format_references(answer.citations)
        if references:
            text = f"{text}\n{references}"

    if output_path:
        out = resolve_output_path(output_path, slug, ".md")
        save_markdown(text, out)
        console.print(f"[green]Saved:[/green] {out}")
    else:
        click.echo(text)

    if verbose:
        console.print(f"[dim]{len(answer.citations)} citations[/dim]")


def _load_hits_file(path: Path) -> list[RetrievalHit]:
    """Read retrieval hits JSON from disk."""
    return load_hits(path.read_bytes())


def _emit_json(obj, output_path: str | None, slug: str) -> None:
    if output_path:
        out = resolve_output_path(output_path, slug, ".json")
        size = save_json(obj, out)
        console.print(f"[green]Saved:[/green] {out} ({size} bytes)")
    else:
        click.echo(dumps_json(obj).decode())


if __name__ == "__main__":
    main()
