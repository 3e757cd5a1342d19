"""
Interface de linha de comando (CLI) do Rate Collector.
Usa Typer para os comandos e Rich para a saída formatada.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config.settings import get_settings
from rate_collector.collector import RateCollector
from rate_collector.core.exceptions import RateCollectorError
from rate_collector.core.types import CalculatorAction

# Inicializa CLI
app = typer.Typer(
    name="rate-collector",
    help="Coleta e comparação de taxas de câmbio USD/PEN das casas de câmbio online.",
    add_completion=False,
)

# Console Rico para output formatado
console = Console()


def run_async(coro):
    """Helper para executar corrotinas."""
    return asyncio.run(coro)


def _spinner(description: str) -> Progress:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
    progress.add_task(description, total=None)
    return progress


def _fail(error: RateCollectorError) -> None:
    console.print(f"[red]✗ {error.message}[/red]")
    raise typer.Exit(code=1)


@app.command("refresh")
def refresh(
    json_output: bool = typer.Option(False, "--json", "-j", help="Saída em formato JSON"),
):
    """
    Executa um ciclo de coleta completo.

    Exemplos:
        rate-collector refresh
        rate-collector refresh --json
    """

    async def _run():
        collector = RateCollector()
        outcome = await collector.trigger_manual_refresh()
        # Espera os extratores lentos para gravar tudo antes de sair
        await collector.close()
        return outcome, await collector.get_merged_rates()

    with _spinner("Coletando taxas..."):
        outcome, snapshot = run_async(_run())

    if json_output:
        payload = snapshot.to_payload()
        payload["success"] = outcome.success
        payload["attempts"] = outcome.attempts
        console.print_json(json.dumps(payload, default=str))
        return

    if not outcome.success:
        console.print(f"[red]✗ {outcome.error}[/red]")
        raise typer.Exit(code=1)

    console.print(
        f"[green]✓ Ciclo concluído em {outcome.attempts} tentativa(s)[/green]"
    )
    _display_rates(snapshot)


@app.command("rates")
def rates(
    json_output: bool = typer.Option(False, "--json", "-j", help="Saída em formato JSON"),
):
    """
    Mostra as últimas taxas conhecidas de cada casa (sem coletar).
    """
    collector = RateCollector()
    snapshot = run_async(collector.get_merged_rates())

    if json_output:
        console.print_json(json.dumps(snapshot.to_payload(), default=str))
        return

    _display_rates(snapshot)


@app.command("best")
def best():
    """
    Melhores casas para comprar e vender dólares.
    """
    collector = RateCollector()
    summary = run_async(collector.get_best_rates())

    if summary is None:
        console.print("[yellow]Nenhuma taxa disponível[/yellow]")
        return

    console.print(Panel(
        f"[bold]Comprar USD:[/bold] [green]{summary.best_sell.display_name}[/green] "
        f"a S/ {summary.best_sell.sell_rate}\n"
        f"[bold]Vender USD:[/bold] [green]{summary.best_buy.display_name}[/green] "
        f"a S/ {summary.best_buy.buy_rate}\n"
        f"[bold]Spread médio:[/bold] {summary.average_spread}\n\n"
        f"Economia em ${summary.reference_amount:,.0f}: "
        f"[bold green]S/ {summary.max_savings}[/bold green]",
        title="🏆 Melhores Taxas",
        border_style="green",
    ))


@app.command("calc")
def calc(
    amount: float = typer.Argument(..., help="Valor (PEN para buy, USD para sell)"),
    action: CalculatorAction = typer.Option(
        CalculatorAction.BUY, "--action", "-a", help="buy (comprar USD) ou sell (vender USD)"
    ),
):
    """
    Converte um valor usando a melhor casa disponível.

    Exemplos:
        rate-collector calc 1000
        rate-collector calc 500 --action sell
    """
    collector = RateCollector()
    try:
        result = run_async(collector.calculate(amount, action))
    except RateCollectorError as e:
        _fail(e)

    if result is None:
        console.print("[yellow]Nenhuma taxa disponível[/yellow]")
        return

    if result.action == CalculatorAction.BUY:
        summary = f"S/ {result.amount:,.2f} → [bold green]$ {result.result:,.2f}[/bold green]"
    else:
        summary = f"$ {result.amount:,.2f} → [bold green]S/ {result.result:,.2f}[/bold green]"

    console.print(Panel(
        f"{summary}\n"
        f"Casa: [cyan]{result.best_provider}[/cyan] (taxa {result.applied_rate})\n"
        f"Pior opção: [red]{result.worst_provider}[/red] (taxa {result.worst_rate})\n"
        f"Economia: [bold green]S/ {result.savings:,.2f}[/bold green]",
        title="💱 Calculadora",
        border_style="blue",
    ))


@app.command("history")
def history(
    provider: str = typer.Argument(..., help="ID do provedor (ex: kambista)"),
    hours: int = typer.Option(24, "--hours", "-h", min=1, max=720, help="Período em horas"),
):
    """
    Histórico de taxas de uma casa.
    """
    collector = RateCollector()
    try:
        rows = run_async(collector.get_provider_history(provider, hours))
    except RateCollectorError as e:
        _fail(e)

    if not rows:
        console.print(f"[yellow]Nenhum histórico encontrado para '{provider}'[/yellow]")
        return

    table = Table(title=f"Histórico: {provider} (últimas {hours}h)")
    table.add_column("Horário", style="cyan")
    table.add_column("Compra", justify="right", style="green")
    table.add_column("Venta", justify="right", style="yellow")
    table.add_column("Spread", justify="right")

    for row in rows:
        table.add_row(
            row["observed_at"],
            f"{row['buy_rate']:.4f}",
            f"{row['sell_rate']:.4f}",
            f"{row['spread']:.4f}",
        )

    console.print(table)


@app.command("stats")
def stats(
    provider: str = typer.Argument(..., help="ID do provedor"),
    days: int = typer.Option(7, "--days", "-d", min=1, max=90, help="Período em dias"),
):
    """
    Estatísticas de uma casa no período.
    """
    collector = RateCollector()
    try:
        data = run_async(collector.get_provider_stats(provider, days))
    except RateCollectorError as e:
        _fail(e)

    if not data:
        console.print(f"[yellow]Sem dados para '{provider}' nos últimos {days} dias[/yellow]")
        return

    console.print(Panel(
        f"""[bold]{provider} nos últimos {days} dias[/bold]

Compra: mín [cyan]{data['min_buy']}[/cyan] / máx [cyan]{data['max_buy']}[/cyan] / média [cyan]{data['avg_buy']}[/cyan]
Venta: mín [yellow]{data['min_sell']}[/yellow] / máx [yellow]{data['max_sell']}[/yellow] / média [yellow]{data['avg_sell']}[/yellow]
Spread médio: [magenta]{data['avg_spread']}[/magenta]
Registros: [blue]{data['total_records']}[/blue]
        """,
        title="📊 Estatísticas",
        border_style="blue",
    ))


@app.command("trend")
def trend(
    hours: int = typer.Option(24, "--hours", "-h", min=1, max=720, help="Período em horas"),
    interval: int = typer.Option(1, "--interval", "-i", min=1, max=24, help="Janela em horas"),
):
    """
    Tendência do mercado (médias por janela de tempo).
    """
    collector = RateCollector()
    rows = run_async(collector.get_trend(hours, interval))

    if not rows:
        console.print("[yellow]Sem dados no período[/yellow]")
        return

    table = Table(title=f"Tendência: últimas {hours}h, janelas de {interval}h")
    table.add_column("Janela", style="cyan")
    table.add_column("Compra média", justify="right", style="green")
    table.add_column("Venta média", justify="right", style="yellow")
    table.add_column("Casas", justify="right")

    for row in rows:
        table.add_row(
            row["time_bucket"],
            f"{row['avg_buy']:.4f}",
            f"{row['avg_sell']:.4f}",
            str(row["provider_count"]),
        )

    console.print(table)


@app.command("providers")
def providers():
    """
    Lista casas de câmbio configuradas.
    """
    collector = RateCollector()

    table = Table(title="Casas de Câmbio")
    table.add_column("ID", style="cyan")
    table.add_column("Nome", style="green")
    table.add_column("Status", style="yellow")
    table.add_column("Método", style="blue")
    table.add_column("URL", overflow="fold")

    for provider in collector.get_available_providers():
        table.add_row(
            provider["id"],
            provider["name"],
            provider["status"],
            provider["method"],
            provider["url"],
        )

    console.print(table)


@app.command("export")
def export(
    output: Optional[Path] = typer.Argument(None, help="Arquivo de saída"),
    format: str = typer.Option("csv", "--format", "-f", help="Formato (csv ou parquet)"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Filtrar por provedor"),
    days: Optional[int] = typer.Option(None, "--days", "-d", help="Últimos N dias"),
):
    """
    Exporta o histórico para arquivo.

    Exemplos:
        rate-collector export taxas.csv
        rate-collector export taxas.parquet --format parquet
        rate-collector export --provider rextie --days 7
    """
    collector = RateCollector()

    try:
        with _spinner("Exportando dados..."):
            path = run_async(
                collector.export_history(
                    format=format,
                    output_path=output,
                    provider=provider,
                    days=days,
                )
            )
    except RateCollectorError as e:
        _fail(e)

    if path:
        console.print(f"[green]✓ Dados exportados para: {path}[/green]")
    else:
        console.print("[yellow]Nenhum dado para exportar[/yellow]")


@app.command("cleanup")
def cleanup(
    days: Optional[int] = typer.Option(None, "--days", "-d", min=1, help="Dias a manter"),
):
    """
    Remove registros antigos do histórico.
    """
    collector = RateCollector()
    removed = run_async(collector.clean_old_records(days))
    console.print(f"[green]✓ {removed} registro(s) removido(s)[/green]")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Host da API"),
    port: Optional[int] = typer.Option(None, "--port", help="Porta da API"),
    no_scheduler: bool = typer.Option(False, "--no-scheduler", help="Não agenda ciclos"),
):
    """
    Sobe a API REST com o agendador de coletas.
    """
    import uvicorn

    from rate_collector.api import create_app

    settings = get_settings()
    api = create_app(settings=settings, start_scheduler=not no_scheduler)
    uvicorn.run(api, host=host or settings.api_host, port=port or settings.api_port)


@app.command("version")
def version():
    """
    Exibe a versão do sistema.
    """
    from rate_collector import __version__

    console.print(f"[bold blue]Rate Collector[/bold blue] v{__version__}")
    console.print("Comparador de taxas de câmbio USD/PEN")


# FUNÇÕES DE DISPLAY

def _display_rates(snapshot):
    """Exibe as taxas atuais formatadas."""
    console.print()

    if snapshot.error:
        console.print(f"[yellow]{snapshot.error}[/yellow]")

    if not snapshot.rates:
        return

    best_buy = max(snapshot.rates, key=lambda r: r.buy_rate).provider
    best_sell = min(snapshot.rates, key=lambda r: r.sell_rate).provider

    table = Table(title=f"Taxas USD/PEN ({snapshot.status.value})")
    table.add_column("Casa", style="cyan")
    table.add_column("Compra", justify="right", style="green")
    table.add_column("Venta", justify="right", style="yellow")
    table.add_column("Spread", justify="right")
    table.add_column("Horário", style="dim")

    for rate in sorted(snapshot.rates, key=lambda r: r.sell_rate):
        buy = f"{rate.buy_rate:.4f}" + (" ★" if rate.provider == best_buy else "")
        sell = f"{rate.sell_rate:.4f}" + (" ★" if rate.provider == best_sell else "")
        table.add_row(
            rate.display_name,
            buy,
            sell,
            f"{rate.spread:.4f}",
            rate.observed_at.strftime("%H:%M:%S"),
        )

    console.print(table)

    if snapshot.last_update:
        console.print(f"[dim]Última atualização: {snapshot.last_update:%d/%m/%Y %H:%M:%S}[/dim]")


if __name__ == "__main__":
    app()
