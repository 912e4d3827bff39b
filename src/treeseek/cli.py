"""CLI entrypoint for treeseek."""

from __future__ import annotations

import os
from pathlib import Path

import click

from treeseek.config.store import SettingsStore
from treeseek.engine import SearchRequest, compile_pattern, search
from treeseek.engine.models import MatchEvent
from treeseek.errors import TraversalError, TreeseekError
from treeseek.fs.listing import ensure_root
from treeseek.reporting import echo_match, echo_summary
from treeseek.results_log import ResultLog
from treeseek.runtime_logging import LOG_LEVELS, configure_runtime_logging
from treeseek.version import __version__


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-file", "--file", "file_name", default="", help="Name of the file to search")
@click.option("-dir", "--dir", "dir_name", default="", help="Name of the directory to search")
@click.option("-regex", "--regex", "regex_pattern", default="", help="Regex pattern to match file/directory names")
@click.option("-root", "--root", "root", default=".", show_default=True, help="Root directory to start the search")
@click.option("-r", "--return-early", "return_early", is_flag=True, help="Return early after finding the first match")
@click.option("-workers", "--workers", "workers", type=click.IntRange(min=1), help="Maximum number of concurrent workers [default: 10]")
@click.option("-log", "--log", "log_results", is_flag=True, help="Append matches and statistics to a log file")
@click.option("-logfile", "--logfile", "log_file", help="Log file for -log [default: search_results.log]")
@click.option("-noerrors", "--noerrors", "suppress_errors", is_flag=True, help="Do not report unreadable directories")
@click.option("--exclude", "exclude", multiple=True, help="gitwildmatch pattern to skip (repeatable)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Settings file to use")
@click.option("--log-level", "log_level", type=click.Choice(LOG_LEVELS), help="Runtime log level")
@click.version_option(__version__, prog_name="treeseek")
def main(
    file_name: str,
    dir_name: str,
    regex_pattern: str,
    root: str,
    return_early: bool,
    workers: int | None,
    log_results: bool,
    log_file: str | None,
    suppress_errors: bool,
    exclude: tuple[str, ...],
    config_path: str | None,
    log_level: str | None,
) -> None:
    """Search a directory tree for files, directories or regex matches."""
    if not (file_name or dir_name or regex_pattern):
        click.echo("Please provide at least one search target (-file, -dir, or -regex)")
        return

    store = SettingsStore(Path(config_path).expanduser() if config_path else None)
    settings = store.load()
    configure_runtime_logging(
        level=log_level or os.getenv("TREESEEK_LOG_LEVEL") or settings.logging.runtime_log_level,
        log_file=settings.logging.runtime_log_file,
    )

    root_path = Path(root).expanduser()
    try:
        ensure_root(root_path)
        compile_pattern(regex_pattern)
    except TreeseekError as exc:
        raise click.ClickException(str(exc))

    request = SearchRequest(
        root=root_path,
        file_name=file_name,
        dir_name=dir_name,
        regex_pattern=regex_pattern,
        return_early=return_early or settings.search.return_early,
        max_workers=workers or settings.search.workers,
        suppress_errors=suppress_errors or settings.search.suppress_errors,
        exclude=tuple(settings.search.exclude) + exclude,
    )

    result_log: ResultLog | None = None
    if log_results or settings.output.log_results:
        target = log_file or settings.output.log_file
        try:
            result_log = ResultLog(target)
        except OSError as exc:
            raise click.ClickException(f"Error creating log file {target}: {exc}")
        result_log.start(request)

    def on_match(event: MatchEvent) -> None:
        echo_match(event)
        if result_log is not None:
            result_log.record(event)

    def on_error(error: TraversalError) -> None:
        click.echo(str(error), err=True)

    try:
        outcome = search(request, on_match=on_match, on_error=on_error)
        echo_summary(request, outcome)
        if result_log is not None:
            result_log.finish(request, outcome)
    except (TreeseekError, OSError) as exc:
        raise click.ClickException(f"Error during search: {exc}")
    finally:
        if result_log is not None:
            result_log.close()


if __name__ == "__main__":
    main()
