#!/usr/bin/env python3
"""
Part Fuzzer - Rule-driven request mutation for vulnerability scanning

Main CLI entry point for the application. Requests are generated and shown,
never sent.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple

import click
import httpx
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from part_fuzzer import __version__
from part_fuzzer.core.config import get_config
from part_fuzzer.core.logger import configure_logging, get_logger
from part_fuzzer.fuzzing import (
    ExecuteRuleInput,
    ExecutorOptions,
    GeneratedRequest,
    InteractshURLProvider,
    NoMoreRequestsError,
    PartFuzzerError,
    Rule,
    RuleEngine,
)

console = Console()
logger = get_logger("cli")


@click.group()
@click.version_option(version=__version__)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.option('--log-level',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
              default=None, help='Set logging level')
@click.option('--log-file', type=click.Path(), help='Path to log file')
@click.option('--quiet', '-q', is_flag=True, help='Hide the banner')
@click.pass_context
def cli(ctx, debug, log_level, log_file, quiet):
    """Part Fuzzer - Rule-driven request mutation for vulnerability scanning"""

    ctx.ensure_object(dict)

    config = get_config()
    debug = debug or config.debug
    level = 'DEBUG' if debug else (log_level or config.log_level)

    ctx.obj['config'] = config

    log_path = Path(log_file) if log_file else None
    configure_logging(
        level=level,
        log_file=log_path,
        rich_console=True,
        show_time=debug,
        show_path=debug
    )

    if not quiet:
        display_banner()


def display_banner():
    """Display the Part Fuzzer banner."""
    banner = f"""
[bold cyan]Part Fuzzer[/bold cyan] v{__version__}
[dim]Rule-driven request mutation for vulnerability scanning[/dim]

[yellow]Use responsibly and only on systems you own or have permission to test[/yellow]
"""
    console.print(Panel(banner, title="Welcome", border_style="blue"))


def load_rules(path: str, config) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """
    Load rule definitions from a YAML file.

    The file holds either a single rule, a list of rules, or a mapping with
    ``fuzzing`` (list of rules) and optional ``variables`` keys.
    """
    with open(path, 'r') as f:
        document = yaml.safe_load(f)

    variables: Dict[str, Any] = {}
    if isinstance(document, dict) and 'fuzzing' in document:
        variables = document.get('variables') or {}
        definitions = document['fuzzing']
    elif isinstance(document, dict):
        definitions = [document]
    else:
        definitions = document or []

    if not isinstance(definitions, list) or not all(isinstance(d, dict) for d in definitions):
        raise click.BadParameter(f"{path} does not contain rule definitions")

    for definition in definitions:
        definition.setdefault('part', config.fuzzing.default_part)
        definition.setdefault('mode', config.fuzzing.default_mode)
    return definitions, variables


def parse_pairs(pairs: Tuple[str, ...], separator: str, option: str) -> List[Tuple[str, str]]:
    """Split NAME<separator>VALUE command line values."""
    parsed = []
    for pair in pairs:
        if separator not in pair:
            raise click.BadParameter(f"expected NAME{separator}VALUE, got {pair!r}", param_hint=option)
        name, value = pair.split(separator, 1)
        parsed.append((name.strip(), value.strip()))
    return parsed


def build_options(config, variables: Dict[str, Any]) -> ExecutorOptions:
    """Create the options shared by all rules of a run."""
    interactsh = None
    if config.interactsh.enabled:
        interactsh = InteractshURLProvider(
            server=config.interactsh.server,
            correlation_id=config.interactsh.correlation_id
        )
    return ExecutorOptions(
        vars=dict(config.fuzzing.variables),
        variables=variables,
        interactsh=interactsh
    )


def request_row(index: int, generated: GeneratedRequest) -> List[str]:
    """Format a generated request for the results table."""
    return [
        str(index),
        generated.component.name,
        escape(generated.key) if generated.key else "[dim]*[/dim]",
        escape(generated.original_value),
        escape(generated.value),
        generated.request.method,
        escape(str(generated.request.url)),
        ", ".join(generated.interact_urls),
    ]


def request_record(generated: GeneratedRequest) -> Dict[str, Any]:
    """Serialise a generated request for JSON output."""
    request = generated.request
    return {
        "component": generated.component.name,
        "key": generated.key,
        "original_value": generated.original_value,
        "value": generated.value,
        "method": request.method,
        "url": str(request.url),
        "headers": dict(request.headers),
        "body": request.content.decode("utf-8", errors="replace"),
        "interact_urls": generated.interact_urls,
    }


@cli.command()
@click.argument('rule_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('url')
@click.option('--method', '-X', default='GET', help='HTTP method of the base request')
@click.option('--header', '-H', 'headers', multiple=True, help='Header as "Name: value"')
@click.option('--data', '-d', default=None, help='Body of the base request')
@click.option('--var', 'variables', multiple=True, help='Dynamic value as name=value')
@click.option('--limit', type=click.IntRange(min=1), default=None, help='Stop after this many requests')
@click.option('--analyzers', is_flag=True, help='Generate analyzer input instead of mutating')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Write requests as JSON')
@click.pass_context
def generate(ctx, rule_file, url, method, headers, data, variables, limit, analyzers, output):
    """Generate fuzzed requests for URL from the rules in RULE_FILE."""
    config = ctx.obj['config']

    definitions, template_variables = load_rules(rule_file, config)
    options = build_options(config, template_variables)
    try:
        rules = [Rule.compile(definition, options) for definition in definitions]
    except PartFuzzerError as e:
        console.print(f"[bold red]✗ {escape(str(e))}[/bold red]")
        raise SystemExit(1)

    base_request = httpx.Request(
        method.upper(),
        url,
        headers=parse_pairs(headers, ':', '--header'),
        content=data.encode() if data is not None else None
    )

    if limit is None and config.fuzzing.max_requests:
        limit = config.fuzzing.max_requests

    generated: List[GeneratedRequest] = []

    def collect(request: GeneratedRequest) -> bool:
        generated.append(request)
        return limit is None or len(generated) < limit

    execute_input = ExecuteRuleInput(
        callback=collect,
        input=base_request,
        values=dict(parse_pairs(variables, '=', '--var')),
        has_analyzers=analyzers
    )

    engine = RuleEngine()
    try:
        for rule in rules:
            stats = engine.execute(rule, execute_input)
            logger.info(
                f"{rule!r}: {stats.dispatched} request(s), "
                f"{stats.skipped_keys + stats.skipped_rebuilds} skipped part(s)"
            )
    except NoMoreRequestsError:
        console.print(f"[yellow]Request limit of {limit} reached[/yellow]")
    except PartFuzzerError as e:
        console.print(f"[bold red]✗ {escape(str(e))}[/bold red]")
        raise SystemExit(1)

    table = Table(title=f"Generated requests ({len(generated)})")
    for column in ("#", "Part", "Key", "Original", "Value", "Method", "URL", "Interactions"):
        table.add_column(column, overflow="fold")
    for index, request in enumerate(generated, start=1):
        table.add_row(*request_row(index, request))
    console.print(table)

    if output:
        Path(output).write_text(json.dumps([request_record(r) for r in generated], indent=2))
        console.print(f"[green]✓ Requests written to {output}[/green]")


@cli.command()
@click.argument('rule_file', type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def validate(ctx, rule_file):
    """Check that the rules in RULE_FILE compile."""
    config = ctx.obj['config']
    definitions, _ = load_rules(rule_file, config)

    failed = False
    for index, definition in enumerate(definitions, start=1):
        try:
            rule = Rule.compile(definition)
            console.print(f"[green]✓ Rule {index}: {escape(repr(rule))}[/green]")
        except PartFuzzerError as e:
            failed = True
            console.print(f"[bold red]✗ Rule {index}: {escape(str(e))}[/bold red]")

    if failed:
        raise SystemExit(1)


if __name__ == '__main__':
    cli()
