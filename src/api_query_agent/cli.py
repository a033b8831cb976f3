"""CLI entry point for api-query-agent."""

import logging
from pathlib import Path

import click

from api_query_agent.config import get_settings
from api_query_agent.errors import ApiQueryAgentError
from api_query_agent.matcher.engine import build_matcher
from api_query_agent.parser.base import ApiCatalog
from api_query_agent.parser.detect import load_catalog

FORMATS = ["auto", "swagger", "postman"]


def _load(doc_path: Path, fmt: str) -> ApiCatalog:
    try:
        return load_catalog(doc_path, fmt)
    except ApiQueryAgentError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """API Query Agent: match natural-language requests to API endpoints."""
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.argument("query")
@click.option("--format", "fmt", default="auto", type=click.Choice(FORMATS), help="Document format.")
@click.option("--model", default=None, help="LLM model to use.")
@click.option("--no-llm", is_flag=True, help="Use keyword matching only.")
def match(doc_path: Path, query: str, fmt: str, model: str | None, no_llm: bool):
    """Match QUERY against the API described by DOC_PATH and print the call plan."""
    catalog = _load(doc_path, fmt)

    settings = get_settings()
    update = {}
    if model:
        update["llm_model"] = model
    if no_llm:
        update["semantic_enabled"] = False
    matcher = build_matcher(catalog, settings.model_copy(update=update))

    try:
        result = matcher.match(query)
    except ApiQueryAgentError as e:
        raise click.ClickException(str(e)) from e
    click.echo(result.to_json())


@main.command()
@click.argument("doc_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "fmt", default="auto", type=click.Choice(FORMATS), help="Document format.")
def endpoints(doc_path: Path, fmt: str):
    """List the endpoints found in DOC_PATH."""
    catalog = _load(doc_path, fmt)
    click.echo(f"{catalog.name} v{catalog.version} ({len(catalog)} endpoints)")
    for ep in catalog.endpoints:
        line = f"  {ep.method:<6} {ep.path}"
        if ep.description:
            line += f"  {ep.description}"
        click.echo(line)
