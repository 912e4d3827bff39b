"""Console formatting for search matches and the final statistics block."""

from __future__ import annotations

import click

from treeseek.engine.models import MatchEvent, SearchOutcome, SearchRequest

_MATCH_PREFIX = {
    "file": "File found at path:",
    "dir": "Directory found at path:",
    "regex": "Match found at path:",
}


def match_line(event: MatchEvent) -> str:
    return f"{_MATCH_PREFIX[event.kind]} {event.path}"


def format_duration(seconds: float) -> str:
    if seconds < 1e-3:
        return f"{seconds * 1e6:.3f}µs"
    if seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    return f"{seconds:.3f}s"


def not_found_lines(request: SearchRequest, outcome: SearchOutcome) -> list[str]:
    lines: list[str] = []
    if request.file_name and not outcome.file_found:
        lines.append("File not found")
    if request.dir_name and not outcome.dir_found:
        lines.append("Directory not found")
    return lines


def stats_lines(request: SearchRequest, outcome: SearchOutcome) -> list[str]:
    """Statistics for the targets that were actually requested."""
    lines = ["Search Statistics:"]
    if request.regex_pattern:
        lines.append(f"- Regex matches found: {outcome.stats.regex_matches}")
    if request.file_name:
        lines.append(f"- Files found: {outcome.stats.files_found}")
    if request.dir_name:
        lines.append(f"- Directories found: {outcome.stats.dirs_found}")
    return lines


def echo_match(event: MatchEvent) -> None:
    click.echo(match_line(event))


def echo_summary(request: SearchRequest, outcome: SearchOutcome) -> None:
    click.echo(f"\nSearch completed in {format_duration(outcome.elapsed_s)}")
    for line in not_found_lines(request, outcome):
        click.echo(line)
    click.echo()
    for line in stats_lines(request, outcome):
        click.echo(line)
