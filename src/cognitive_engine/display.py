# display.py
# All terminal output for the cognitive engine.
#
# This module owns presentation entirely. The planner, monitor and agent
# never format strings; they call named functions here.
#
# Colour language:
#   cyan    — scaffolding / routing events
#   blue    — reasoning-service calls
#   yellow  — monitor warnings (stalls, pivots, exhausted budgets)
#   green   — success / confirmed
#   red     — failures
#   magenta — tool calls

import json

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from cognitive_engine.models import ExecutionPhase, ExecutionSummary, StrategicPlan

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


def _percent(value: float) -> str:
    return f"{value * 100:.0f}%"


# ---------------------------------------------------------------------------
# Task lifecycle
# ---------------------------------------------------------------------------


def agent_start(task: str) -> None:
    console.print()
    console.print(Rule("[cyan]COGNITIVE AGENT STARTING[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{task}[/white]",
            title=_label("TASK", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


def context_gathered(project_type: str, key_files: int) -> None:
    console.print(
        _label("CONTEXT", "cyan"),
        f"[cyan] {project_type} project, {key_files} key file(s)[/cyan]",
    )


def agent_failed(error: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]{error}[/bold red]",
            title=_label("AGENT FAILED ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------


def plan_created(plan: StrategicPlan) -> None:
    console.print()
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="cyan",
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("#", justify="center", width=3)
    table.add_column("Phase", style="bold white", width=28)
    table.add_column("Type", width=13)
    table.add_column("Budget", justify="right", width=6)
    table.add_column("Tools", style="dim white")

    for index, phase in enumerate(plan.phases, start=1):
        table.add_row(
            str(index),
            phase.name,
            phase.type,
            str(phase.estimated_iterations),
            ", ".join(phase.tools) or "reasoning only",
        )

    approach = plan.approach
    subtitle = (
        f"[dim]{approach.approach} ({_percent(approach.confidence)}) · "
        f"complexity {plan.estimated_complexity} · risk {plan.risk_assessment.level}[/dim]"
    )
    console.print(
        Panel(
            table,
            title=_label("STRATEGIC PLAN", "cyan"),
            subtitle=subtitle,
            border_style="cyan",
            padding=(0, 1),
        )
    )


def phase_start(phase: ExecutionPhase, index: int, total: int) -> None:
    console.print()
    console.print(
        f"[bold cyan]  PHASE [{index + 1}/{total}][/bold cyan]  [white]{phase.name}[/white]"
        f"  [dim]{phase.description}[/dim]"
    )


def phase_complete(phase_id: str) -> None:
    console.print(f"  [bold green]✓ Phase complete[/bold green]  [dim]{phase_id}[/dim]")


def phase_budget_exhausted(phase_id: str, budget: int) -> None:
    console.print(
        f"  [yellow]⚠ Phase {phase_id} did not complete within {budget} iteration(s)"
        "[/yellow]"
    )


# ---------------------------------------------------------------------------
# Iteration loop
# ---------------------------------------------------------------------------


def reasoning_call(iteration: int, phase_iteration: int) -> None:
    console.print(
        f"  [blue]↳ Reasoning exchange[/blue] [dim blue]iteration={iteration} "
        f"phase_iteration={phase_iteration}[/dim blue]"
    )


def tool_call(tool: str, args: dict) -> None:
    console.print(
        f"  [magenta]Tool[/magenta]     [bold white]{tool}[/bold white]"
        f"  [dim]{_mono(json.dumps(args, default=str), 100)}[/dim]"
    )


def tool_result(tool: str, success: bool, duration: float) -> None:
    mark = "[bold green]✓[/bold green]" if success else "[bold red]✗[/bold red]"
    console.print(f"  [magenta]Result[/magenta]   {mark} [dim]{tool} ({duration * 1000:.0f}ms)[/dim]")


# ---------------------------------------------------------------------------
# Self-monitoring
# ---------------------------------------------------------------------------


def discovery(fact: str) -> None:
    console.print(f"  [green]💡 Discovery[/green]  [white]{_mono(fact)}[/white]")


def failure_recorded(phase: str, tool: str, error: str) -> None:
    console.print(
        f"  [red]✗ Failed attempt[/red] [dim]in {phase}:[/dim] "
        f"[white]{tool}[/white] [dim]- {_mono(error, 100)}[/dim]"
    )


def stuck_detected(reason: str | None) -> None:
    console.print(f"  [bold yellow]⚠ Stuck detected:[/bold yellow] [yellow]{reason}[/yellow]")


def pivot(from_strategy: str, to_strategy: str, reason: str) -> None:
    console.print(
        f"  [yellow]🔄 Strategy pivot[/yellow] [white]{from_strategy} → {to_strategy}[/white]"
        f" [dim]({_mono(reason, 100)})[/dim]"
    )


def delegation_opportunity(target: str | None) -> None:
    console.print(f"  [cyan]🤖 Delegation opportunity[/cyan] [dim]{target or ''}[/dim]")


def user_question(asked: int, limit: int) -> None:
    console.print(f"  [yellow]📝 User question asked ({asked}/{limit})[/yellow]")


def checkpoint_restored(iteration: int, tool_calls: int) -> None:
    console.print(
        _label("MONITOR", "yellow"),
        f"[yellow] State restored: iteration {iteration}, {tool_calls} tool call(s)[/yellow]",
    )


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


def notification(message: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[white]{message}[/white]",
            title=_label("NOTIFY", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


def notification_failed(error: str) -> None:
    console.print(f"  [red]Notification delivery failed:[/red] [dim]{_mono(error)}[/dim]")


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def monitor_summary(summary: str) -> None:
    console.print()
    console.print(Panel(summary, title="[dim]EXECUTION MEMORY[/dim]", border_style="dim"))


def execution_summary(summary: ExecutionSummary) -> None:
    console.print()
    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 1))
    table.add_column("Field", style="dim")
    table.add_column("Value", style="white")
    table.add_row("Iterations", str(summary.iterations))
    table.add_row("Tool calls", str(summary.tool_calls))
    table.add_row("Phases", f"{summary.phases_completed}/{summary.total_phases}")
    table.add_row("Discoveries", str(len(summary.discoveries)))

    color = "green" if summary.success else "red"
    console.print(
        Panel(
            table,
            title=_label("RESULT" if summary.success else "FAILED", color),
            subtitle=f"[dim]{_mono(summary.message, 80)}[/dim]",
            border_style=color,
            padding=(0, 1),
        )
    )
    console.print()
