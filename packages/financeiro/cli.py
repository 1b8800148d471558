"""Typer console interface for ``financeiro``.

Every command opens a :class:`~financeiro.session.FinanceSession` on the
configured state file, applies one change (or renders the selected month) and
flushes the pending write before exiting. Environment variables are loaded
from a local ``.env`` via ``python-dotenv`` by the root callback.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .dates import format_month_label, is_date_error
from .ledger import neighbor_months, sorted_month_keys
from .logging_setup import configure_logging
from .models import SORT_ORDERS, STATUS_FILTERS, Payment
from .sanitizers import format_money
from .session import FinanceSession
from .storage import (
    InvalidDocumentError,
    JsonFileStorage,
    read_import_file,
    write_export_file,
)

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="financeiro",
    no_args_is_help=True,
    add_completion=False,
    help="Monthly income, savings and payments tracker (pt-BR).",
)


@contextmanager
def _open_session() -> Iterator[FinanceSession]:
    settings = load_settings()
    session = FinanceSession(
        JsonFileStorage(settings.store_path),
        save_delay_seconds=settings.save_delay_seconds,
    )
    try:
        yield session
    finally:
        session.close()


def _resolve_payment(session: FinanceSession, ref: str) -> Payment:
    """Find a payment by id or by its 1-based position in the month."""

    found = session.find_payment(ref)
    if found is not None:
        return found
    payments = session.month.payments
    try:
        position = int(ref)
    except ValueError:
        position = 0
    if 1 <= position <= len(payments):
        return payments[position - 1]
    err_console.print(f"[red]Error:[/red] payment not found: {ref}")
    raise typer.Exit(1)


def _render_month(session: FinanceSession) -> None:
    month = session.month
    totals = session.totals()
    prev_key, next_key = neighbor_months(session.store)

    nav = " | ".join(
        part
        for part in (
            f"< {format_month_label(prev_key)}" if prev_key else "",
            f"[bold]{format_month_label(month.competence)}[/bold]",
            f"{format_month_label(next_key)} >" if next_key else "",
        )
        if part
    )
    console.print(nav)
    console.print(
        f"Valor fixo: {month.valor_fixo or '-'}   "
        f"Renda extra: {month.renda_extra or '-'}   "
        f"Cofrinho: {month.cofrinho.value if month.cofrinho and month.cofrinho.value else '-'}"
        + (f" (meta {month.cofrinho.goal})" if month.cofrinho and month.cofrinho.goal else "")
    )

    table = Table(
        title=f"Pagamentos ({session.status_filter}, {session.sort_order})",
        show_lines=False,
    )
    table.add_column("#", justify="right")
    table.add_column("Descrição")
    table.add_column("Valor", justify="right")
    table.add_column("Vencimento")
    table.add_column("Status")
    table.add_column("Id", style="dim")
    positions = {p.id: i for i, p in enumerate(month.payments, start=1)}
    for p in session.visible_payments():
        due = p.vencimento or "-"
        if is_date_error(p.vencimento):
            due = f"[red]{due} (data inválida)[/red]"
        status = "Pago" if p.pago else "Aberto"
        if p.recorrente:
            status += " ↻"
        table.add_row(str(positions[p.id]), p.descricao, p.valor, due, status, p.id)
    console.print(table)

    console.print(f"Valor utilizável: {format_money(totals.usable_balance)}")
    console.print(f"Total pago: {format_money(totals.total_paid)}")
    console.print(f"Total em aberto: {format_money(totals.total_open)}")
    console.print(f"Restante no cofrinho: {format_money(totals.savings_remaining)}")


# ---- Commands ----------------------------------------------------------------


@app.command("show")
def show_cmd() -> None:
    """Show the selected month: payments table and totals."""

    with _open_session() as session:
        _render_month(session)


@app.command("months")
def months_cmd() -> None:
    """List months in chronological order, marking the selected one."""

    with _open_session() as session:
        for key in sorted_month_keys(session.store):
            marker = "*" if key == session.store.selected_month else " "
            console.print(f"{marker} {key}  {format_month_label(key)}")


@app.command("add-month")
def add_month_cmd() -> None:
    """Create the month after the latest one, carrying recurring payments."""

    with _open_session() as session:
        key = session.add_month()
        console.print(f"Mês criado: {format_month_label(key)} ({key})")


@app.command("select-month")
def select_month_cmd(
    key: Annotated[str, typer.Argument(help="Month key in yyyy-mm form")],
) -> None:
    """Select a month (creating it empty when it does not exist)."""

    with _open_session() as session:
        try:
            session.select_month(key)
        except ValueError:
            err_console.print(f"[red]Error:[/red] invalid month key: {key}")
            raise typer.Exit(1) from None
        console.print(f"Mês selecionado: {format_month_label(key)}")


@app.command("set-income")
def set_income_cmd(value: Annotated[str, typer.Argument(help="Digits, read as cents")]) -> None:
    """Set the fixed monthly income of the selected month."""

    with _open_session() as session:
        session.set_valor_fixo(value)
        console.print(f"Valor fixo: {session.month.valor_fixo or '-'}")


@app.command("set-extra")
def set_extra_cmd(value: Annotated[str, typer.Argument(help="Digits, read as cents")]) -> None:
    """Set the extra income of the selected month."""

    with _open_session() as session:
        session.set_renda_extra(value)
        console.print(f"Renda extra: {session.month.renda_extra or '-'}")


@app.command("set-savings")
def set_savings_cmd(value: Annotated[str, typer.Argument(help="Digits, read as cents")]) -> None:
    """Set the amount put aside in the piggy bank ("" clears it)."""

    with _open_session() as session:
        session.set_cofrinho_value(value)
        cofrinho = session.month.cofrinho
        console.print(f"Cofrinho: {cofrinho.value if cofrinho and cofrinho.value else '-'}")


@app.command("set-goal")
def set_goal_cmd(value: Annotated[str, typer.Argument(help="Digits, read as cents")]) -> None:
    """Set the piggy bank goal ("" clears it)."""

    with _open_session() as session:
        session.set_cofrinho_goal(value)
        cofrinho = session.month.cofrinho
        console.print(f"Meta: {cofrinho.goal if cofrinho and cofrinho.goal else '-'}")


@app.command("add-payment")
def add_payment_cmd(
    descricao: Annotated[str, typer.Option("--descricao", "-d", help="Description")] = "",
    valor: Annotated[str, typer.Option("--valor", "-v", help="Amount digits (cents)")] = "",
    vencimento: Annotated[
        str, typer.Option("--vencimento", "-t", help="Due date digits, ddmmyyyy")
    ] = "",
    pago: Annotated[bool, typer.Option("--pago/--aberto", help="Paid flag")] = False,
    recorrente: Annotated[
        bool, typer.Option("--recorrente/--avulso", help="Carry into new months")
    ] = False,
) -> None:
    """Append a payment to the selected month."""

    with _open_session() as session:
        payment = session.add_payment()
        for field, value in (
            ("descricao", descricao),
            ("valor", valor),
            ("vencimento", vencimento),
            ("pago", pago),
            ("recorrente", recorrente),
        ):
            if value:
                session.update_payment(payment.id, field, value)
        console.print(f"Pagamento adicionado: {payment.id}")


@app.command("edit-payment")
def edit_payment_cmd(
    ref: Annotated[str, typer.Argument(help="Payment id or 1-based position")],
    descricao: Annotated[str | None, typer.Option("--descricao", "-d")] = None,
    valor: Annotated[str | None, typer.Option("--valor", "-v")] = None,
    vencimento: Annotated[str | None, typer.Option("--vencimento", "-t")] = None,
    pago: Annotated[bool | None, typer.Option("--pago/--aberto")] = None,
    recorrente: Annotated[bool | None, typer.Option("--recorrente/--avulso")] = None,
) -> None:
    """Change fields of a payment in the selected month."""

    with _open_session() as session:
        payment = _resolve_payment(session, ref)
        for field, value in (
            ("descricao", descricao),
            ("valor", valor),
            ("vencimento", vencimento),
            ("pago", pago),
            ("recorrente", recorrente),
        ):
            if value is not None:
                session.update_payment(payment.id, field, value)
        updated = session.find_payment(payment.id)
        if updated is not None and is_date_error(updated.vencimento):
            err_console.print(f"[yellow]Aviso:[/yellow] data inválida: {updated.vencimento}")
        console.print(f"Pagamento atualizado: {payment.id}")


@app.command("remove-payment")
def remove_payment_cmd(
    ref: Annotated[str, typer.Argument(help="Payment id or 1-based position")],
) -> None:
    """Remove a payment from the selected month."""

    with _open_session() as session:
        payment = _resolve_payment(session, ref)
        session.remove_payment(payment.id)
        console.print(f"Pagamento removido: {payment.id}")


@app.command("filter")
def filter_cmd(
    value: Annotated[str, typer.Argument(help="One of: " + ", ".join(STATUS_FILTERS))],
) -> None:
    """Set the status filter used by ``show``."""

    with _open_session() as session:
        try:
            session.set_status_filter(value)
        except ValueError as e:
            err_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from None


@app.command("sort")
def sort_cmd(
    value: Annotated[str, typer.Argument(help="One of: " + ", ".join(SORT_ORDERS))],
) -> None:
    """Set the sort order used by ``show``."""

    with _open_session() as session:
        try:
            session.set_sort_order(value)
        except ValueError as e:
            err_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from None


@app.command("export")
def export_cmd(
    output: Annotated[
        Path, typer.Argument(help="Target file, or a directory for financeiro.json")
    ] = Path("."),
) -> None:
    """Export every month plus the view preferences as JSON."""

    with _open_session() as session:
        payload = session.export()
    try:
        target = write_export_file(payload, output)
    except OSError as e:
        err_console.print(f"[red]Error:[/red] failed to write export: {e}")
        raise typer.Exit(1) from None
    console.print(f"Exportado para {target}")


@app.command("import")
def import_cmd(
    path: Annotated[Path, typer.Argument(help="JSON file exported earlier (v1 or v2)")],
) -> None:
    """Import a JSON document, merging its months into the current state."""

    try:
        text = read_import_file(path)
    except (OSError, UnicodeDecodeError) as e:
        err_console.print(f"[red]Error:[/red] failed to read '{path}': {e}")
        raise typer.Exit(1) from None

    with _open_session() as session:
        try:
            session.import_text(text)
        except InvalidDocumentError as e:
            err_console.print(str(e))
            raise typer.Exit(1) from None
        console.print(f"Importado. Mês selecionado: {session.store.selected_month}")


@app.callback()
def _root() -> None:
    """Load ``.env`` from the current directory and set up logging."""

    # override=False keeps variables already set in the environment
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover - `python -m financeiro.cli`
    app()
