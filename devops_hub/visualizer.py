"""
Visualizer for DevOps Hub

Renders analytics results as markdown (tool output), boxed terminal text
and an HTML workload dashboard.
"""

from html import escape
from typing import Literal

from .classifier import IssueTextAnalysis
from .health import SprintHealthResult
from .workload import WorkloadDashboard, WorkloadStatus
from .worklogs import TeamWorklogSummary, TimeTrackingSummary, format_duration


# ASCII art for terminal output
class ASCIICharts:
    """Generate ASCII art charts for terminal/text output."""

    @staticmethod
    def horizontal_bar(
        value: float,
        max_value: float = 100,
        width: int = 20,
        filled_char: str = "█",
        empty_char: str = "░"
    ) -> str:
        """Create a horizontal bar chart."""
        if max_value <= 0:
            return empty_char * width

        filled = int((value / max_value) * width)
        filled = max(0, min(filled, width))
        return filled_char * filled + empty_char * (width - filled)

    @staticmethod
    def workload_bar(assigned: int, max_assigned: int, width: int = 20) -> str:
        """Bar scaled to the busiest member, with the status emoji."""
        bar = ASCIICharts.horizontal_bar(assigned, max_assigned, width)
        return f"{bar} {assigned:3d} {WorkloadStatus.from_assigned(assigned).emoji}"


def _bullets(items) -> list[str]:
    return [f"- {item}" for item in items]


class MarkdownReporter:
    """Markdown renderings returned by the MCP tools."""

    @staticmethod
    def sprint_health(health: SprintHealthResult) -> str:
        b = health.breakdown
        lines = [
            f"# Sprint Health Analysis: {health.sprint_name}",
            "",
            f"## Overall Health: {health.health_status.emoji} {health.health_score}/100 "
            f"({health.health_status.value.upper()})",
            "",
            "### 📊 Issue Breakdown",
            f"- Total: {b.total}",
            f"- Done: {b.done} ({health.completion_rate}%)",
            f"- In Progress: {b.in_progress}",
            f"- To Do: {b.todo}",
            f"- Blocked: {b.blocked}",
            "",
            "### 📈 Metrics",
            f"- Burndown: {health.burndown_health.value}",
            "",
        ]
        if health.blocked_issues:
            lines += ["### 🚫 Blocked Issues", *_bullets(health.blocked_issues), ""]
        if health.risks:
            lines += ["### ⚠️ Risks", *_bullets(health.risks), ""]
        lines += ["### 💡 Recommendations", *_bullets(health.recommendations)]
        return "\n".join(lines) + "\n"

    @staticmethod
    def workload_dashboard(dashboard: WorkloadDashboard) -> str:
        title = "# 📊 Team Workload Dashboard"
        if dashboard.sprint_name:
            title += f" ({dashboard.sprint_name})"
        lines = [
            title,
            "",
            f"Generated: {dashboard.generated_at.isoformat()}",
            f"Team Size: {dashboard.team_size} | Total Issues: {dashboard.total_issues} | "
            f"Avg Workload: {dashboard.average_workload}",
            f"Balance Score: {dashboard.balance_score}/100",
            "",
            "## 👥 Team Workload",
            "",
        ]
        for member in dashboard.members:
            lines += [
                f"### {member.status.emoji} {member.name}",
                f"- Assigned: {member.assigned_issues}",
                f"- In Progress: {member.in_progress_issues}",
                f"- Status: {member.status.value}",
            ]
            if member.risk_factors:
                lines.append(f"- Risks: {', '.join(member.risk_factors)}")
            lines.append("")

        if dashboard.bottlenecks:
            lines += ["## 🚧 Bottlenecks", *_bullets(dashboard.bottlenecks), ""]
        if dashboard.recommendations:
            lines += ["## 💡 Recommendations", *_bullets(dashboard.recommendations)]
        return "\n".join(lines) + "\n"

    @staticmethod
    def issue_analysis(analysis: IssueTextAnalysis) -> str:
        lines = [
            "# 🤖 Smart Issue Analysis",
            "",
            "## Suggested Properties",
            f"- **Type**: {analysis.suggested_type}",
            f"- **Priority**: {analysis.suggested_priority}",
            f"- **Story Points**: {analysis.estimated_story_points}",
            f"- **Labels**: {', '.join(analysis.suggested_labels) or 'None'}",
            "",
        ]
        if analysis.similar_issues:
            lines += ["## 🔍 Similar Issues"]
            lines += [f"- **{s.key}**: {s.summary}" for s in analysis.similar_issues]
            lines.append("")
        if analysis.suggestions:
            lines += ["## 💡 Suggestions", *_bullets(analysis.suggestions)]
        return "\n".join(lines) + "\n"

    @staticmethod
    def time_tracking(summary: TimeTrackingSummary) -> str:
        lines = [
            f"⏱️ Time Tracking for {summary.issue_key}: {summary.issue_summary}",
            "",
            f"- **Original Estimate**: {format_duration(summary.original_estimate)}",
            f"- **Time Spent**: {format_duration(summary.time_spent)}",
            f"- **Remaining**: {format_duration(summary.remaining_estimate)}",
            f"- **Progress**: {summary.progress}%",
        ]
        if summary.worklogs:
            lines += ["", "**Worklogs:**"]
            for worklog in summary.worklogs:
                started = worklog.started.date().isoformat() if worklog.started else "unknown date"
                lines.append(f"- {worklog.author}: {worklog.time_spent} on {started}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def team_worklogs(summary: TeamWorklogSummary, limit: int = 10) -> str:
        lines = [f"⏱️ Team Worklogs Summary (Total: {summary.total_formatted})", "", "**By User:**"]
        lines += [f"- {entry.name}: {entry.formatted}" for entry in summary.users[:limit]]
        lines += ["", "**Top Issues:**"]
        lines += [f"- {entry.name}: {entry.formatted}" for entry in summary.issues[:limit]]
        return "\n".join(lines) + "\n"


class TextReporter:
    """Generate text-based reports."""

    @staticmethod
    def team_workload_report(dashboard: WorkloadDashboard) -> str:
        """Generate a boxed text report of team workload."""
        lines = []

        # Header
        lines.append("╔" + "═" * 60 + "╗")
        lines.append("║" + "TEAM WORKLOAD REPORT".center(60) + "║")
        lines.append("║" + f"Generated: {dashboard.generated_at.strftime('%Y-%m-%d %H:%M')}".center(60) + "║")
        lines.append("╠" + "═" * 60 + "╣")

        # Summary stats
        lines.append("║ SUMMARY".ljust(61) + "║")
        lines.append("║" + "─" * 60 + "║")
        lines.append(f"║  Team Size: {dashboard.team_size}".ljust(61) + "║")
        lines.append(f"║  Total Issues: {dashboard.total_issues}".ljust(61) + "║")
        lines.append(f"║  Average Workload: {dashboard.average_workload}".ljust(61) + "║")
        lines.append(f"║  Balance Score: {dashboard.balance_score}/100".ljust(61) + "║")
        lines.append("╠" + "═" * 60 + "╣")

        lines.append("║ INDIVIDUAL WORKLOADS".ljust(61) + "║")
        lines.append("║" + "─" * 60 + "║")

        busiest = max((m.assigned_issues for m in dashboard.members), default=0)
        for member in dashboard.members:
            name = member.name[:15].ljust(15)
            bar = ASCIICharts.workload_bar(member.assigned_issues, busiest, 15)
            lines.append(f"║  {name} {bar}".ljust(61) + "║")

        lines.append("╚" + "═" * 60 + "╝")

        return "\n".join(lines)


class HTMLReporter:
    """Generate HTML reports (for dashboard or email)."""

    STATUS_COLORS = {
        WorkloadStatus.UNDERUTILIZED: "#3b82f6",
        WorkloadStatus.OPTIMAL: "#22c55e",
        WorkloadStatus.HEAVY: "#eab308",
        WorkloadStatus.OVERLOADED: "#ef4444"
    }

    @staticmethod
    def team_dashboard(dashboard: WorkloadDashboard) -> str:
        """Generate HTML dashboard for team workload."""
        busiest = max((m.assigned_issues for m in dashboard.members), default=0)
        member_cards = ""
        for member in dashboard.members:
            color = HTMLReporter.STATUS_COLORS[member.status]
            width = member.assigned_issues / busiest * 100 if busiest else 0
            risks = "".join(f"<li>{escape(r)}</li>" for r in member.risk_factors)
            member_cards += f"""
            <div class="member-card">
                <div class="member-name">{escape(member.name)}</div>
                <div class="progress-bar">
                    <div class="progress-fill" style="width: {width:.0f}%; background-color: {color};"></div>
                </div>
                <div class="workload-value">{member.assigned_issues} issues</div>
                <div class="member-details">
                    <span>In progress: {member.in_progress_issues}</span>
                    <span>Stale: {member.overdue_issues}</span>
                    <span>{member.status.value}</span>
                </div>
                <ul class="risks">{risks}</ul>
            </div>
            """

        recommendations = "".join(f"<li>{escape(r)}</li>" for r in dashboard.recommendations)

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <title>Team Workload Dashboard</title>
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }}
                .dashboard {{ max-width: 1200px; margin: 0 auto; }}
                .header {{ background: #1e293b; color: white; padding: 20px; border-radius: 8px; margin-bottom: 20px; }}
                .header h1 {{ margin: 0; }}
                .stats {{ display: grid; grid-template-columns: repeat(4, 1fr); gap: 16px; margin-bottom: 20px; }}
                .stat-card {{ background: white; padding: 20px; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }}
                .stat-value {{ font-size: 32px; font-weight: bold; }}
                .stat-label {{ color: #64748b; font-size: 14px; }}
                .members {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(300px, 1fr)); gap: 16px; }}
                .member-card {{ background: white; padding: 16px; border-radius: 8px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }}
                .member-name {{ font-weight: 600; margin-bottom: 8px; }}
                .progress-bar {{ background: #e2e8f0; height: 8px; border-radius: 4px; overflow: hidden; }}
                .progress-fill {{ height: 100%; }}
                .workload-value {{ font-size: 24px; font-weight: bold; margin: 8px 0; }}
                .member-details {{ color: #64748b; font-size: 12px; display: flex; gap: 12px; }}
                .risks {{ color: #ef4444; font-size: 12px; }}
            </style>
        </head>
        <body>
            <div class="dashboard">
                <div class="header">
                    <h1>📊 Team Workload Dashboard</h1>
                    <p>Updated: {dashboard.generated_at.strftime('%Y-%m-%d %H:%M')}</p>
                </div>

                <div class="stats">
                    <div class="stat-card">
                        <div class="stat-value">{dashboard.team_size}</div>
                        <div class="stat-label">Team Members</div>
                    </div>
                    <div class="stat-card">
                        <div class="stat-value">{dashboard.total_issues}</div>
                        <div class="stat-label">Assigned Issues</div>
                    </div>
                    <div class="stat-card">
                        <div class="stat-value">{dashboard.average_workload}</div>
                        <div class="stat-label">Average Workload</div>
                    </div>
                    <div class="stat-card">
                        <div class="stat-value">{dashboard.balance_score}</div>
                        <div class="stat-label">Balance Score</div>
                    </div>
                </div>

                <div class="members">
                    {member_cards}
                </div>

                <ul class="recommendations">{recommendations}</ul>
            </div>
        </body>
        </html>
        """


# Main visualization class
class Visualizer:
    """
    Main visualizer class that supports multiple output formats.

    Usage:
        viz = Visualizer()

        # Markdown for tool output
        print(viz.workload_report(dashboard, format="markdown"))

        # HTML dashboard
        html = viz.workload_report(dashboard, format="html")
    """

    def __init__(self):
        self.markdown = MarkdownReporter()
        self.text = TextReporter()
        self.html = HTMLReporter()

    def workload_report(
        self,
        dashboard: WorkloadDashboard,
        format: Literal["markdown", "text", "html"] = "markdown"
    ) -> str:
        """Generate team workload report in specified format."""
        if format == "markdown":
            return self.markdown.workload_dashboard(dashboard)
        elif format == "text":
            return self.text.team_workload_report(dashboard)
        elif format == "html":
            return self.html.team_dashboard(dashboard)
        else:
            raise ValueError(f"Unknown format: {format}")

    def sprint_report(self, health: SprintHealthResult) -> str:
        return self.markdown.sprint_health(health)
