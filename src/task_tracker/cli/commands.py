# src/task_tracker/cli/commands.py

"""
Subcommands of the `task` CLI.

Commands only parse input, call into the tasks package and print results.
Every TaskError is turned into "Error: <message>" and exit code 1.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, List, NoReturn, Optional

import typer

from ..config import get_settings
from ..errors import ParseError, TaskError
from ..tasks.codec import now as current_time
from ..tasks.lifecycle import add_task, complete_task, finish, update_task
from ..tasks.queries import all_tags, average_per_day, filter_by_tags, resolve_window, stats_window
from ..tasks.tag_parser import parse_tags
from ..tasks.task_models import ARCHIVE, TASKS, ListOptions, StatsOptions, UpdateOptions
from ..tasks.task_store import TaskStore
from .bootstrap import open_store
from .formatting import format_archive, format_day, format_tasks

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="A CLI for managing your TODOs",
    no_args_is_help=True,
    add_completion=False,
)

DATE_FORMAT = "%m/%d/%Y"


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


@contextmanager
def _session() -> Iterator[TaskStore]:
    """Open the store for one command and report core errors to the user."""
    try:
        store = open_store(settings=get_settings())
    except TaskError as error:
        _fail(str(error))

    try:
        yield store
    except TaskError as error:
        logger.debug("Command failed: %s", error, exc_info=True)
        _fail(str(error))
    finally:
        store.close()


def _print_tasks(store: TaskStore, *, show_tags: bool = False) -> None:
    typer.echo(format_tasks(store.scan(TASKS), show_tags=show_tags))


def _parse_day(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except ValueError as error:
        raise ParseError(f"Error parsing date {value!r}, expected mm/dd/yyyy") from error


@app.command()
def add(words: List[str] = typer.Argument(..., help="Task text; a +tag anywhere sets the tag")):
    """Add a new task to your TODO list."""
    with _session() as store:
        _, description, _ = add_task(store, " ".join(words))
        typer.echo(f"Added task: '{description}'")


@app.command("do")
def do_tasks(
    ids: List[int] = typer.Argument(..., help="IDs of the tasks to complete"),
    finish_tasks: bool = typer.Option(
        False, "--finish", "-f", help="Complete and finish the specified tasks"
    ),
):
    """Mark tasks on your TODO list as complete."""
    with _session() as store:
        for task_id in ids:
            if complete_task(store, task_id):
                typer.echo(f"Completed task {task_id}")
            else:
                typer.echo(f"You already finished task {task_id}")

        if finish_tasks:
            finish(store, ids)

        typer.echo()
        _print_tasks(store)


@app.command()
def update(
    task_id: int = typer.Argument(..., help="ID of the task to update"),
    des: Optional[str] = typer.Option(
        None,
        "--des",
        "-d",
        help="New task description. A tag in the new description replaces the old tag",
    ),
    status: bool = typer.Option(False, "--status", "-s", help="Flip the completion status"),
):
    """Update a task."""
    options = UpdateOptions(new_description=des, flip_status=status)
    with _session() as store:
        update_task(store, task_id, options)
        typer.echo(f"Updated task {task_id}")
        _print_tasks(store)


@app.command("list")
def list_tasks(
    tags: Optional[List[str]] = typer.Argument(None, help="Only show tasks with these +tags"),
    show_tags: bool = typer.Option(False, "--tag", "-t", help="Show the tag of each task"),
    exclude: str = typer.Option(
        "",
        "--exclude",
        "-e",
        help="Comma separated tags to hide, e.g. -e tag1,tag2. Use 'none' for untagged tasks",
    ),
):
    """List your tasks."""
    include, _ = parse_tags(" ".join(tags or []))
    options = ListOptions(
        include_tags=frozenset(include),
        exclude_tags=frozenset(t for t in exclude.split(",") if t),
        show_tags=show_tags,
    )
    if options.include_tags and options.exclude_tags:
        _fail("Can't use tag filtering in combination with exclude flag")

    with _session() as store:
        tasks = filter_by_tags(store.scan(TASKS), options.include_tags, options.exclude_tags)
        typer.echo(format_tasks(tasks, show_tags=options.show_tags))


@app.command("finish")
def finish_command():
    """Archive all completed tasks."""
    with _session() as store:
        moved = finish(store)
        typer.echo(f"Archived {moved} completed tasks")
        _print_tasks(store)


@app.command()
def clear():
    """Delete all tasks."""
    with _session() as store:
        store.drop(TASKS)
        typer.echo("Deleted all tasks")


@app.command()
def delete(ids: List[int] = typer.Argument(..., help="IDs of the tasks to delete")):
    """Delete tasks."""
    ids = list(dict.fromkeys(ids))
    with _session() as store:
        count = store.count(TASKS)
        for task_id in ids:
            if not 1 <= task_id <= count:
                _fail(f"{task_id} is out of range, only {count} tasks exist")

        if len(ids) == 1:
            store.delete(TASKS, ids[0])
        else:
            store.delete_many(TASKS, ids)

        for task_id in ids:
            typer.echo(f"Deleted task {task_id}")
        typer.echo()
        _print_tasks(store)


@app.command()
def archive(
    clear_archive: bool = typer.Option(False, "--clear", "-c", help="Delete all archive entries"),
):
    """View all previously completed tasks."""
    with _session() as store:
        if clear_archive:
            store.drop(ARCHIVE)
            typer.echo("Cleared the archive")
            return

        tasks = store.scan(ARCHIVE)
        if not tasks:
            typer.echo("Archive is empty, finish a task to add it to the archive")
            return
        typer.echo(format_archive(tasks))


@app.command()
def stats(
    start: Optional[str] = typer.Option(None, "--start", "-s", help="mm/dd/yyyy start of the window"),
    end: Optional[str] = typer.Option(None, "--end", "-e", help="mm/dd/yyyy end of the window"),
    on: Optional[str] = typer.Option(
        None, "--on", "-o", help="mm/dd/yyyy; a single day. Cannot be combined with --start/--end"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show the completed tasks"),
    average: bool = typer.Option(False, "--average", "-a", help="Show the average tasks completed/day"),
):
    """See statistics on your task completion."""
    if on and (start or end):
        _fail("--on cannot be used with --start or --end")

    with _session() as store:
        options = StatsOptions(
            start=_parse_day(start),
            end=_parse_day(end),
            on=_parse_day(on),
            verbose=verbose,
            average=average,
        )
        window_start, window_end = resolve_window(
            options.start, options.end, options.on, now=current_time()
        )
        completed = stats_window(store.scan(ARCHIVE), window_start, window_end)

        if options.verbose:
            typer.echo(format_tasks(completed))
        typer.echo(
            f"\nYou completed {len(completed)} tasks from "
            f"{format_day(window_start)} to {format_day(window_end)}"
        )
        if options.average:
            avg = average_per_day(len(completed), window_start, window_end)
            typer.echo(f"Average: {avg:.1f}/day")


@app.command()
def count():
    """Print the number of existing tasks."""
    with _session() as store:
        typer.echo(f"{store.count(TASKS)} tasks")


@app.command()
def tags():
    """Print existing tags."""
    with _session() as store:
        typer.echo(",".join(all_tags(store.scan(TASKS))))
