import json
import logging
from datetime import datetime
from pathlib import Path

import click

from config.constants import InterestType, LoanStatus, LoanType, PrepaymentMode
from config.settings import DEFAULT_CURRENCY_SYMBOL, EXCEL_FILE, LOG_LEVEL
from core.advisory import generate_tips, loan_badges
from core.amortization import compute_installment, minimum_installment, total_interest
from core.comparison import compare_loans, summarize_loans
from core.errors import LoanEngineError
from core.impact import apply_impact, generate_impact_notes, simulate_impact
from core.prepayment import (
    apply_prepayment, compare_prepayment_modes, generate_prepayment_notes, simulate_prepayment,
)
from core.progress import reconstruct_progress
from data_manager.data_validator import validate_loan_snapshot
from data_manager.excel_handler import (
    delete_loan, get_all_config, get_all_loans, get_config, get_prepayments,
    list_loans, load_loan, save_loan, save_prepayment, set_config,
)
from data_manager.schema import DurationChange, InstallmentChange, LoanSnapshot
from utils.formatters import fmt_amount, fmt_months, fmt_percent, fmt_rate
from utils.id_generator import generate_loan_id, generate_prepayment_id

INTEREST_TYPES = click.Choice([e.value for e in InterestType])
PREPAYMENT_MODES = click.Choice([e.value for e in PrepaymentMode])


def _data_file(ctx) -> Path:
    return ctx.obj["data_file"]


def _symbol(ctx) -> str:
    return get_config("currency_symbol", _data_file(ctx)) or DEFAULT_CURRENCY_SYMBOL


def _require_loan(ctx, loan_id: str) -> LoanSnapshot:
    loan = load_loan(loan_id, _data_file(ctx))
    if loan is None:
        raise click.ClickException(f"Loan with ID '{loan_id}' not found.")
    return loan


@click.group()
@click.option('--data-file', type=click.Path(dir_okay=False, path_type=Path), default=EXCEL_FILE,
              show_default=True, help='Workbook holding the loans')
@click.option('--verbose', '-v', is_flag=True, help='Log debug output')
@click.pass_context
def cli(ctx, data_file, verbose):
    """Loan tracker: progress, what-if simulations and early-closure tips."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["data_file"] = data_file


@cli.command()
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--tenure', type=int, required=True, help='Tenure in months')
@click.option('--interest-type', type=INTEREST_TYPES, default=InterestType.REDUCING.value, show_default=True)
def installment(principal, rate, tenure, interest_type):
    """Calculates the monthly installment and total interest for loan terms."""
    try:
        monthly = compute_installment(principal, rate, tenure, interest_type)
        interest = total_interest(principal, rate, tenure, interest_type)
    except LoanEngineError as e:
        raise click.ClickException(str(e))
    click.echo(f"Monthly installment: {monthly:.2f}")
    click.echo(f"Total interest: {interest:.2f}")


@cli.command('add-loan')
@click.option('--name', type=str, required=True, help='Loan name')
@click.option('--loan-type', type=click.Choice([e.value for e in LoanType]), default=LoanType.TAKEN.value, show_default=True)
@click.option('--principal', type=float, required=True, help='Loan principal')
@click.option('--rate', type=float, required=True, help='Annual interest rate (%)')
@click.option('--interest-type', type=INTEREST_TYPES, help='Defaults to the configured interest type')
@click.option('--tenure', type=int, required=True, help='Tenure in months')
@click.option('--installment', 'installment_amount', type=float, help='Monthly installment (computed when omitted)')
@click.option('--outstanding', type=float, help='Outstanding balance (defaults to the principal)')
@click.option('--start-date', type=str, required=True, help='Start date (YYYY-MM-DD)')
@click.option('--notes', type=str, default='', help='Notes')
@click.pass_context
def add_loan(ctx, name, loan_type, principal, rate, interest_type, tenure, installment_amount,
             outstanding, start_date, notes):
    """Adds a new loan."""
    interest_type = interest_type or get_config("interest_type", _data_file(ctx)) or InterestType.REDUCING.value
    try:
        if installment_amount is None:
            installment_amount = round(compute_installment(principal, rate, tenure, interest_type), 2)
        loan = LoanSnapshot(
            loan_id=generate_loan_id(),
            name=name,
            loan_type=loan_type,
            principal=principal,
            interest_rate_pct=rate,
            interest_type=interest_type,
            original_tenure_months=tenure,
            installment=installment_amount,
            outstanding_balance=principal if outstanding is None else outstanding,
            start_date=datetime.strptime(start_date, '%Y-%m-%d').date(),
            notes=notes,
        )
    except (LoanEngineError, ValueError) as e:
        raise click.ClickException(str(e))
    ok, msg = validate_loan_snapshot(loan)
    if not ok:
        raise click.ClickException(msg)
    save_loan(loan, _data_file(ctx))
    click.echo(f"Loan with ID '{loan.loan_id}' added successfully.")


@cli.command('list-loans')
@click.pass_context
def list_loans_command(ctx):
    """Lists all loans."""
    loans = get_all_loans(_data_file(ctx))
    click.echo(loans.to_string() if not loans.empty else "No loans recorded.")


@cli.command('show-loan')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.pass_context
def show_loan(ctx, loan_id):
    """Shows a loan with its badges."""
    loan = _require_loan(ctx, loan_id)
    click.echo(json.dumps(loan.to_dict(), indent=2, ensure_ascii=False))
    badges = loan_badges(loan)
    if badges:
        click.echo(f"Badges: {', '.join(badges)}")


@cli.command('delete-loan')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.pass_context
def delete_loan_command(ctx, loan_id):
    """Deletes a loan and its prepayment history."""
    _require_loan(ctx, loan_id)
    delete_loan(loan_id, _data_file(ctx))
    click.echo(f"Loan with ID '{loan_id}' deleted successfully.")


@cli.command()
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.pass_context
def progress(ctx, loan_id):
    """Shows the repayment progress reconstructed from the outstanding balance."""
    loan = _require_loan(ctx, loan_id)
    symbol = _symbol(ctx)
    result = reconstruct_progress(loan)
    click.echo(f"Installments paid: {result.periods_elapsed} of {loan.original_tenure_months}")
    click.echo(f"Remaining: {fmt_months(result.periods_remaining)}")
    click.echo(f"Progress: {fmt_percent(result.progress_percentage)}")
    click.echo(f"Outstanding principal: {fmt_amount(result.remaining_principal, symbol)}")
    click.echo(f"Interest paid (approx.): {fmt_amount(result.interest_paid_approx, symbol)}")
    click.echo(f"Interest remaining (approx.): {fmt_amount(result.interest_remaining_approx, symbol)}")
    if result.is_heuristic:
        click.echo("Note: progress is a rough estimate for this loan.")


@cli.command()
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--new-installment', type=float, help='Desired monthly installment')
@click.option('--new-duration', type=int, help='Desired remaining duration in months')
@click.option('--apply', 'apply_change', is_flag=True, help='Save the change to the loan')
@click.pass_context
def impact(ctx, loan_id, new_installment, new_duration, apply_change):
    """Simulates changing the installment or the remaining duration."""
    if (new_installment is None) == (new_duration is None):
        raise click.UsageError("Pass exactly one of --new-installment or --new-duration.")
    loan = _require_loan(ctx, loan_id)
    symbol = _symbol(ctx)
    if new_installment is not None:
        change = InstallmentChange(new_installment)
        click.echo(f"Minimum installment: {fmt_amount(minimum_installment(loan), symbol)}")
    else:
        change = DurationChange(new_duration)

    try:
        result = simulate_impact(loan, change)
        if not result.achievable:
            click.echo("Not achievable: this installment never pays off the loan.")
            return
        click.echo(f"New installment: {fmt_amount(result.new_installment, symbol)}")
        click.echo(f"New remaining duration: {fmt_months(result.new_remaining_periods)}")
        click.echo(f"New end date: {result.new_end_date.isoformat()}")
        for note in generate_impact_notes(result, symbol):
            click.echo(f"- {note}")
        if apply_change:
            save_loan(apply_impact(loan, change), _data_file(ctx))
            click.echo(f"Loan with ID '{loan_id}' updated.")
    except LoanEngineError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--amount', type=float, required=True, help='Prepayment amount')
@click.option('--mode', type=PREPAYMENT_MODES, default=PrepaymentMode.REDUCE_DURATION.value, show_default=True)
@click.option('--apply', 'apply_change', is_flag=True, help='Record the prepayment and update the loan')
@click.pass_context
def prepay(ctx, loan_id, amount, mode, apply_change):
    """Simulates a lump-sum prepayment."""
    loan = _require_loan(ctx, loan_id)
    symbol = _symbol(ctx)
    try:
        result = simulate_prepayment(loan, amount, mode)
        click.echo(f"New installment: {fmt_amount(result.new_installment, symbol)}")
        click.echo(f"New remaining duration: {fmt_months(result.new_remaining_periods)}")
        click.echo(f"New end date: {result.new_end_date.isoformat()}")
        for note in generate_prepayment_notes(result, symbol):
            click.echo(f"- {note}")
        if not apply_change:
            return
        updated = apply_prepayment(loan, amount, mode)
    except LoanEngineError as e:
        raise click.ClickException(str(e))

    progress_before = reconstruct_progress(loan)
    save_prepayment({
        "prepayment_id": generate_prepayment_id(),
        "loan_id": loan_id,
        "recorded_at": datetime.now().isoformat(timespec="seconds"),
        "amount": amount,
        "mode": result.mode.value,
        "outstanding_before": loan.outstanding_balance,
        "outstanding_after": updated.outstanding_balance,
        "old_remaining_periods": progress_before.periods_remaining,
        "new_remaining_periods": result.new_remaining_periods,
        "old_installment": round(loan.installment, 2),
        "new_installment": round(result.new_installment, 2),
        "interest_saved": round(result.interest_saved, 2),
    }, _data_file(ctx))
    save_loan(updated, _data_file(ctx))
    if updated.status is LoanStatus.CLOSED:
        click.echo(f"Loan with ID '{loan_id}' closed.")
    else:
        click.echo(f"Loan with ID '{loan_id}' updated.")


@cli.command('compare-modes')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.option('--amount', type=float, required=True, help='Prepayment amount')
@click.pass_context
def compare_modes(ctx, loan_id, amount):
    """Compares reducing the duration with reducing the installment."""
    loan = _require_loan(ctx, loan_id)
    try:
        click.echo(compare_prepayment_modes(loan, amount).to_string(index=False))
    except LoanEngineError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.pass_context
def tips(ctx, loan_id):
    """Lists early-closure tips for a loan."""
    loan = _require_loan(ctx, loan_id)
    found = generate_tips(loan, _symbol(ctx))
    if not found:
        click.echo("No tips for this loan.")
    for tip in found:
        click.echo(f"[{tip.priority.value}] {tip.title}: {tip.detail}. {tip.impact_text}")


@cli.command()
@click.pass_context
def summary(ctx):
    """Summarises active borrowed loans and compares all loans."""
    symbol = _symbol(ctx)
    loans = list_loans(_data_file(ctx))
    totals = summarize_loans(loans)
    click.echo(f"Active loans: {totals['active_loans']}")
    click.echo(f"Monthly installments: {fmt_amount(totals['total_installment'], symbol)}")
    click.echo(f"Total outstanding: {fmt_amount(totals['total_outstanding'], symbol)}")
    click.echo(f"Installments remaining: {totals['total_remaining_periods']}")
    click.echo(f"Interest yet to pay: {fmt_amount(totals['total_interest_remaining'], symbol)}")
    comparison = compare_loans(loans)
    if not comparison.empty:
        click.echo("--- Loans by interest rate ---")
        comparison["interest_rate_pct"] = comparison["interest_rate_pct"].map(fmt_rate)
        click.echo(comparison.to_string(index=False))


@cli.command('list-prepayments')
@click.option('--loan-id', type=str, required=True, help='Loan ID')
@click.pass_context
def list_prepayments(ctx, loan_id):
    """Lists applied prepayments for a loan."""
    prepayments = get_prepayments(loan_id, _data_file(ctx))
    click.echo(prepayments.to_string() if not prepayments.empty else "No prepayments recorded.")


@cli.command('list-configs')
@click.pass_context
def list_configs(ctx):
    """Lists all settings."""
    click.echo(get_all_config(_data_file(ctx)).to_string())


@cli.command('get-config')
@click.option('--key', type=str, required=True, help='Config key')
@click.pass_context
def get_config_command(ctx, key):
    """Gets a setting by its key."""
    value = get_config(key, _data_file(ctx))
    if value is not None:
        click.echo(value)
    else:
        click.echo(f"Config with key '{key}' not found.")


@cli.command('set-config')
@click.option('--key', type=str, required=True, help='Config key')
@click.option('--value', type=str, required=True, help='Config value')
@click.option('--description', type=str, default='', help='Description')
@click.pass_context
def set_config_command(ctx, key, value, description):
    """Sets a setting."""
    set_config(key, value, description, _data_file(ctx))
    click.echo(f"Config with key '{key}' set successfully.")


if __name__ == "__main__":
    cli()
