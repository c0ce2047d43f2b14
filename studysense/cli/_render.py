"""
Rich rendering of analysis reports, plans and stored history.
"""

from typing import List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from studysense.models import AnalysisReport, StoredAnalysis, WeeklyPlanEntry


def render_trend(cons: Console, report: AnalysisReport) -> None:
    trend = report.weekly_trend
    table = Table(title="Weekly Trends", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Hours per week", f"{trend.weekly_hours:.1f}h")
    table.add_row("Efficiency score", f"{trend.efficiency_score:.1f}")
    table.add_row("Consistency", f"{trend.consistency_score:.1f}%")
    table.add_row("Improvement rate", f"{trend.improvement_rate:.1f}%")
    cons.print(table)


def render_subjects(cons: Console, report: AnalysisReport) -> None:
    """Current and predicted score per subject, side by side."""
    table = Table(title="Subject Performance")
    table.add_column("Subject", style="cyan")
    table.add_column("Mean Retention", style="magenta")
    table.add_column("Predicted", style="green")
    for subject, score in report.subject_performance.items():
        predicted = report.predicted_scores.get(subject)
        table.add_row(
            escape(subject),
            f"{score:.1f}%",
            f"{predicted:.1f}%" if predicted is not None else "-",
        )
    cons.print(table)


def render_recommendations(cons: Console, report: AnalysisReport) -> None:
    if not report.recommendations:
        cons.print(
            "[green]All study metrics meet their targets. No recommendations.[/green]"
        )
        return

    table = Table(title="Recommendations")
    table.add_column("#", style="dim")
    table.add_column("Category", style="cyan")
    table.add_column("Advice")
    table.add_column("Confidence", style="magenta")
    table.add_column("Impact", style="yellow")
    for i, rec in enumerate(report.recommendations, start=1):
        table.add_row(
            str(i),
            rec.category.upper(),
            rec.message,
            f"{rec.confidence * 100:.0f}%",
            f"{rec.impact_score}/10",
        )
    cons.print(table)

    priority = report.priority_recommendation()
    if priority is not None:
        cons.print(
            Panel(priority.message, title="Next Step", border_style="green")
        )


def render_report(cons: Console, report: AnalysisReport) -> None:
    """Print every section of an analysis report."""
    cons.print(
        f"[bold]Study analysis for student [cyan]{escape(report.student_id)}[/cyan][/bold]"
    )
    render_trend(cons, report)
    render_subjects(cons, report)
    if report.optimal_times:
        cons.print(
            "Optimal study times: "
            + ", ".join(f"[bold cyan]{escape(t)}[/bold cyan]" for t in report.optimal_times)
        )
    render_recommendations(cons, report)


def render_plan(cons: Console, plan: List[WeeklyPlanEntry]) -> None:
    table = Table(title="Optimized Weekly Study Plan")
    table.add_column("Day", style="dim")
    table.add_column("Subject", style="cyan")
    table.add_column("Time", style="magenta")
    table.add_column("Hours")
    table.add_column("Predicted Retention", style="green")
    for entry in plan:
        table.add_row(
            str(entry.day),
            escape(entry.subject),
            escape(entry.time_of_day),
            f"{entry.hours:.1f}",
            f"{entry.predicted_retention:.1f}%",
        )
    cons.print(table)


def render_history(cons: Console, history: List[StoredAnalysis]) -> None:
    table = Table(title="Stored Analyses")
    table.add_column("ID", style="dim")
    table.add_column("Created (UTC)", style="cyan")
    table.add_column("Weekly Hours", style="magenta")
    table.add_column("Efficiency", style="magenta")
    table.add_column("Recommendations", style="yellow")
    for stored in history:
        trend = stored.report.weekly_trend
        table.add_row(
            str(stored.analysis_id),
            stored.created_at.strftime("%Y-%m-%d %H:%M"),
            f"{trend.weekly_hours:.1f}",
            f"{trend.efficiency_score:.1f}",
            str(len(stored.report.recommendations)),
        )
    cons.print(table)
