"""CLI entry point for seller-scorecard"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import ConfigurationError, load_config
from .metrics import METRIC_LABELS, attainment_tone, percent
from .records import SalespersonRecord
from .scoring_system import ScoreResult
from .session import ReadOnlyError, RecordNotFoundError, ScorecardSession
from .store import InvalidImportError, RecordStore
from .tenants import list_tenants, resolve_tenant

TONE_COLORS = {"good": "green", "accent": "yellow", "neutral": None}
GRADE_COLORS = {"A": "green", "F": "red"}


def setup_logging(verbose: bool) -> None:
    logger = logging.getLogger("seller_scorecard")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option('--store', '-s', 'store_key', envvar='SCORECARD_STORE', default='', help='Store (tenant) key, e.g. toyota-morumbi')
@click.option('--read-only', is_flag=True, envvar='SCORECARD_READ_ONLY', help='Disable changes to records (export/import stay enabled)')
@click.option('--config', '-c', 'config_path', envvar='SCORECARD_CONFIG', help='Path to a scorecard YAML config')
@click.option('--data-dir', envvar='SCORECARD_DATA_DIR', type=click.Path(file_okay=False), help='Directory for persisted records')
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def main(ctx: click.Context, store_key: str, read_only: bool, config_path: Optional[str],
         data_dir: Optional[str], verbose: bool):
    """Score salespeople against their monthly goals"""
    setup_logging(verbose)

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        fail(str(e))

    tenant = resolve_tenant(store_key, config)
    store = RecordStore(Path(data_dir) if data_dir else None)
    session = ScorecardSession(tenant, config, store, read_only=read_only)

    if verbose:
        click.echo(f"Store: {tenant.label} ({tenant.storage_key})", err=True)
        if config.source:
            click.echo(f"Config: {config.source}", err=True)

    ctx.obj = session
    # One-shot process: write pending changes before exiting
    ctx.call_on_close(session.flush)


@main.command('tenants')
@click.pass_obj
def tenants_cmd(session: ScorecardSession):
    """List known stores"""
    for tenant in list_tenants(session.config):
        marker = "*" if tenant.key == session.tenant.key else " "
        click.echo(f"{marker} {tenant.key:<22} {tenant.label}")


@main.command('list')
@click.pass_obj
def list_cmd(session: ScorecardSession):
    """Show every salesperson ranked by final score"""
    header = session.tenant.label
    if session.read_only:
        header += "  [SOMENTE LEITURA]"
    click.echo(header)

    for position, (record, result) in enumerate(session.leaderboard(), start=1):
        flag = " (zerou métrica crítica)" if result.has_zero_metric else ""
        grade = click.style(result.grade, fg=GRADE_COLORS.get(result.grade), bold=True)
        click.echo(
            f"{position:>3}. {grade} {percent(result.final_score):>7}  "
            f"{record.name or '(sem nome)'}  [{record.id}]{flag}"
        )


@main.command('add')
@click.option('--name', '-n', default='', help='Salesperson name')
@click.pass_obj
def add_cmd(session: ScorecardSession, name: str):
    """Add a salesperson to the active store"""
    try:
        record = session.add(name=name)
    except ReadOnlyError as e:
        fail(str(e))
    click.echo(record.id)


@main.command('set')
@click.argument('record_id')
@click.argument('field')
@click.argument('value')
@click.pass_obj
def set_cmd(session: ScorecardSession, record_id: str, field: str, value: str):
    """Set FIELD (e.g. actuals.sales, bonusSignals.ratingScore) on a record"""
    try:
        session.update(record_id, field, value)
    except ReadOnlyError as e:
        fail(str(e))
    except RecordNotFoundError:
        fail(f"No record with id {record_id}")
    except (KeyError, ValueError) as e:
        fail(e.args[0] if e.args else str(e))
    click.echo(render_score(session.get(record_id), session.score(record_id)))


@main.command('remove')
@click.argument('record_id')
@click.pass_obj
def remove_cmd(session: ScorecardSession, record_id: str):
    """Remove a salesperson"""
    try:
        session.remove(record_id)
    except ReadOnlyError as e:
        fail(str(e))
    except RecordNotFoundError:
        fail(f"No record with id {record_id}")
    click.echo(f"Removed {record_id}")


@main.command('score')
@click.argument('record_id', required=False)
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON')
@click.pass_obj
def score_cmd(session: ScorecardSession, record_id: Optional[str], as_json: bool):
    """Show the score breakdown for one record, or all of them"""
    if record_id:
        try:
            pairs = [(session.get(record_id), session.score(record_id))]
        except RecordNotFoundError:
            fail(f"No record with id {record_id}")
    else:
        pairs = session.scores()

    if as_json:
        payload = [dict(result.to_dict(), id=record.id, name=record.name) for record, result in pairs]
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    click.echo("\n\n".join(render_score(record, result) for record, result in pairs))


@main.command('export')
@click.option('--out', '-o', default='.', type=click.Path(file_okay=False), help='Output directory')
@click.pass_obj
def export_cmd(session: ScorecardSession, out: str):
    """Export the store's records to JSON"""
    try:
        path = session.export_json(Path(out))
    except OSError as e:
        fail(f"Export failed: {e}")
    click.echo(f"Exported {len(session.records)} record(s) to {path}")


@main.command('import')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_cmd(session: ScorecardSession, file: str):
    """Replace the store's records with the contents of a JSON file"""
    try:
        records = session.import_json(Path(file))
    except InvalidImportError as e:
        fail(f"Arquivo inválido: {e}")
    click.echo(f"Imported {len(records)} record(s)")


def render_score(record: SalespersonRecord, result: ScoreResult) -> str:
    """Human-readable breakdown of a record's score"""
    lines = [
        f"{record.name or '(sem nome)'} - {record.store_label or '-'}  [{record.id}]",
        f"  Grade: {click.style(result.grade, fg=GRADE_COLORS.get(result.grade), bold=True)}"
        + ("  (zerou métrica crítica)" if result.has_zero_metric else ""),
        f"  Score: {percent(result.final_score)}  (base {percent(result.base_score)}, bônus {percent(result.bonus)})",
    ]
    for key, ratio in result.attainment.items():
        pct = click.style(percent(ratio), fg=TONE_COLORS[attainment_tone(ratio)])
        lines.append(
            f"    {METRIC_LABELS[key]:<30} meta {record.goals.get(key)!s:>8}  "
            f"real {record.actuals.get(key)!s:>8}  {pct}"
        )
    for note in result.notes:
        lines.append(f"  - {note}")
    if record.notes:
        lines.append(f"  Obs: {record.notes}")
    return "\n".join(lines)


if __name__ == '__main__':
    main()
