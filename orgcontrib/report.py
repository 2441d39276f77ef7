from __future__ import annotations

import csv
from pathlib import Path

from orgcontrib.models import RankedList, RunResult
from orgcontrib.ranking import top


def render_ranking(ranked: RankedList, limit: int | None = None) -> str:
    shown = top(ranked, limit)
    if not shown:
        return "No contributors found."

    width = max(len("Login"), *(len(user.login) for user in shown))
    lines = [f"{'#':>4}  {'Login':<{width}}  Contributions"]
    for position, user in enumerate(shown, start=1):
        lines.append(f"{position:>4}  {user.login:<{width}}  {user.total_count}")

    hidden = len(ranked) - len(shown)
    if hidden > 0:
        lines.append(f"... {hidden} more")
    return "\n".join(lines)


def render_markdown(result: RunResult) -> str:
    lines = [
        f"# Contributors - {result.org}",
        "",
        f"**Repositories:** {result.repo_count}",
        f"**Contributors:** {len(result.ranked)}",
        "",
    ]

    if result.status == "failed":
        lines.extend(["## Error", result.listing_error or "Listing repositories failed.", ""])
        return "\n".join(lines)

    if result.failed_repos:
        lines.append("## Missing Repositories")
        lines.extend(f"- {name}" for name in result.failed_repos)
        lines.append("")

    lines.extend(["## Ranking", ""])
    if not result.ranked:
        lines.append("None found.")
    else:
        lines.extend(["| Rank | Login | Contributions |", "|---:|---|---:|"])
        for position, user in enumerate(result.ranked, start=1):
            lines.append(f"| {position} | {user.login} | {user.total_count} |")

    lines.append("")
    return "\n".join(lines)


def write_report(output_path: Path, result: RunResult) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.suffix.lower() == ".csv":
        write_csv(output_path, result.ranked)
    else:
        output_path.write_text(render_markdown(result), encoding="utf-8")
    return output_path


def write_csv(output_path: Path, ranked: RankedList) -> Path:
    with output_path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh)
        writer.writerow(["rank", "login", "contributions"])
        for position, user in enumerate(ranked, start=1):
            writer.writerow([position, user.login, user.total_count])
    return output_path
