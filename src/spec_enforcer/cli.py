"""CLI entry point for spec-enforcer."""

import fnmatch
import json
from pathlib import Path

import click
import yaml

from spec_enforcer.errors import SpecLoadError
from spec_enforcer.parser.base import SpecModel
from spec_enforcer.parser.swagger import parse_openapi
from spec_enforcer.traffic import Exchange, load_exchanges
from spec_enforcer.validation.outcome import ValidationOutcome
from spec_enforcer.validation.validator import OpenApiValidator


def _load_spec(spec_path: Path) -> SpecModel:
    """Parse the contract, printing every diagnostic before giving up."""
    try:
        return parse_openapi(spec_path)
    except SpecLoadError as e:
        click.echo(f"Failed to load {spec_path}:", err=True)
        for diagnostic in e.diagnostics:
            click.echo(f"  - {diagnostic}", err=True)
        raise SystemExit(1)


def _filter_exchanges(exchanges: list[Exchange], patterns: tuple[str, ...]) -> list[Exchange]:
    """Keep exchanges matching any pattern: 'POST /users' or a path glob like '/users/*'."""
    if not patterns:
        return exchanges

    result = []
    for ex in exchanges:
        for pattern in patterns:
            method, _, path_glob = pattern.rpartition(" ")
            if method and method.upper() != ex.method.upper():
                continue
            if fnmatch.fnmatchcase(ex.path, path_glob):
                result.append(ex)
                break
    return result


def _check_exchange(validator: OpenApiValidator, ex: Exchange) -> list[ValidationOutcome]:
    outcomes = []
    req = ex.request
    outcome = validator.validate_request(
        ex.method,
        ex.path,
        req.content_type,
        req.body_text(),
        headers=req.headers,
        query=req.query,
        path_parameters=req.path_parameters,
    )
    if outcome is not None:
        outcomes.append(outcome)

    if ex.response is not None:
        resp = ex.response
        outcome = validator.validate_response(
            ex.method,
            ex.path,
            resp.status,
            resp.content_type,
            resp.body_text(),
            headers=resp.headers,
        )
        if outcome is not None:
            outcomes.append(outcome)
    return outcomes


@click.group()
def main():
    """Spec Enforcer: check HTTP traffic against an OpenAPI contract."""
    pass


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, path_type=Path))
def inspect(spec_path: Path):
    """Load a contract and list its operations."""
    spec = _load_spec(spec_path)
    title = spec.title or spec_path.name
    click.echo(f"{title} {spec.version} ({spec.source_format}): {len(spec.paths)} paths")
    for entry in spec.paths:
        for method, operation in entry.operations.items():
            statuses = ", ".join(operation.responses) or "-"
            click.echo(f"  {method:<7} {entry.template}  [{statuses}]")


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, path_type=Path))
@click.argument("traffic_path", type=click.Path(exists=True, path_type=Path))
@click.option("--strict", is_flag=True, help="Also report undeclared parameters, headers and properties.")
@click.option("--only", "only", multiple=True, help="Only check matching exchanges, e.g. 'POST /users' or '/users/*'.")
@click.option("--format", "fmt", default="text", type=click.Choice(["text", "json"]), help="Output format.")
def check(spec_path: Path, traffic_path: Path, strict: bool, only: tuple[str, ...], fmt: str):
    """Validate recorded traffic against a contract. Exits 1 when anything fails."""
    spec = _load_spec(spec_path)
    validator = OpenApiValidator(spec, strict_mode=strict)

    try:
        exchanges = _filter_exchanges(load_exchanges(traffic_path), only)
    except (ValueError, TypeError, yaml.YAMLError) as e:
        raise click.ClickException(f"Cannot read traffic file {traffic_path}: {e}")

    outcomes = []
    for ex in exchanges:
        outcomes.extend(_check_exchange(validator, ex))

    if fmt == "json":
        click.echo(json.dumps([o.model_dump(mode="json") for o in outcomes], indent=2))
    else:
        for outcome in outcomes:
            where = outcome.kind.lower()
            if outcome.status_code is not None:
                where += f" {outcome.status_code}"
            click.echo(f"FAIL {outcome.method} {outcome.path} ({where}): {outcome.message}")
            if outcome.findings != [outcome.message]:
                for finding in outcome.findings:
                    click.echo(f"    - {finding}")
            if outcome.details:
                click.echo(f"    details: {outcome.details}")
        click.echo(f"Checked {len(exchanges)} exchanges, {len(outcomes)} problems found.")

    if outcomes:
        raise SystemExit(1)
