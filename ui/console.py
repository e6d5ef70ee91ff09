from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from models.types import Decision, GateStatus, Regime, Signal

SIGNAL_STYLES = {
    Signal.CALL: "bold green",
    Signal.PUT: "bold red",
    Signal.WAIT: "bold yellow",
}

REGIME_STYLES = {
    Regime.VOLATILE: "magenta",
    Regime.COMPRESSION: "cyan",
    Regime.RANGE: "white",
}


def _fmt_price(value) -> str:
    return f"{value:.2f}" if value is not None else "-"


def generate_decision_table(decision: Decision) -> Table:
    table = Table(title="Quant Engine Signal", expand=True)
    table.add_column("Signal", justify="center")
    table.add_column("Conf", justify="right")
    table.add_column("Regime", justify="center")
    table.add_column("Price", justify="right")
    table.add_column("Entry", justify="right")
    table.add_column("Stop", justify="right")
    table.add_column("Target", justify="right")

    levels = decision.levels

    table.add_row(
        Text(decision.signal.value, style=SIGNAL_STYLES[decision.signal]),
        f"{decision.confidence:.1f}",
        Text(decision.regime.value, style=REGIME_STYLES[decision.regime]),
        f"{decision.price:.2f}",
        _fmt_price(levels.entry if levels else None),
        _fmt_price(levels.stop_loss if levels else None),
        _fmt_price(levels.target if levels else None),
    )
    return table


def generate_reasons_panel(decision: Decision) -> Panel:
    body = Text()
    body.append(decision.confirmation.value + "\n", style="bold")
    body.append(f"Bull {decision.bull_score:.1f} / Bear {decision.bear_score:.1f}\n", style="dim")
    for reason in decision.reasons:
        body.append(f"• {reason}\n")
    return Panel(body, title="Factors", border_style="blue")


def print_decision(console: Console, decision: Decision):
    console.print(generate_decision_table(decision))
    console.print(generate_reasons_panel(decision))


def print_gate_closed(console: Console, status: GateStatus):
    console.print(Panel(Text(status.reason, style="bold yellow"), title="Market Closed", border_style="yellow"))
