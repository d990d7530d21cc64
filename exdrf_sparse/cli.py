import asyncio
import logging
from typing import List, Tuple

import click
from dotenv import load_dotenv

from exdrf_sparse.__version__ import __version__
from exdrf_sparse.array import SparseArray
from exdrf_sparse.config import (
    DEFAULT_BATCH_SIZE,
    ENV_BATCH_SIZE,
    ENV_DELAY,
    ENV_TOTAL,
)
from exdrf_sparse.errors import InvalidConfiguration, LoadFailure
from exdrf_sparse.loader import ListLoader
from exdrf_sparse.observers import ArrayObserver
from exdrf_sparse.slot import Unloaded
from exdrf_sparse.window import select_window


class EchoObserver(ArrayObserver):
    """Prints the requests and the changes of an array."""

    def request_issued(self, array, request):
        click.echo(f"load({request.start}, {request.count})")

    def did_change(self, array, start, removed, added):
        click.echo(f"change({start}, {removed}, {added})")

    def request_failed(self, array, request, error):
        click.echo(f"failed({request.start}, {request.count}): {error}")


def _parse_range(text: str) -> Tuple[int, int]:
    try:
        start, end = (int(part) for part in text.split(":"))
    except ValueError:
        raise click.BadParameter(
            f"'{text}' is not a START:END range", param_hint="--loaded"
        )
    if start < 0 or end < start:
        raise click.BadParameter(
            f"'{text}' is not a valid range", param_hint="--loaded"
        )
    return start, end


@click.group()
@click.option("--debug/--no-debug", default=False)
@click.version_option(__version__, prog_name="exdrf-sparse")
def cli(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.debug("Debug mode is on")
    load_dotenv(override=False)


@cli.command()
@click.option(
    "--total",
    type=int,
    default=100,
    show_default=True,
    envvar=ENV_TOTAL,
    help="Number of items in the simulated source.",
)
@click.option(
    "--batch-size",
    type=int,
    default=DEFAULT_BATCH_SIZE,
    show_default=True,
    envvar=ENV_BATCH_SIZE,
    help="Number of items requested at once.",
)
@click.option(
    "--delay",
    type=float,
    default=0.0,
    envvar=ENV_DELAY,
    help="Seconds the source waits before answering.",
)
@click.option(
    "--append",
    "append_count",
    type=click.IntRange(min=0),
    default=0,
    help="Items added to the source after the first batch.",
)
@click.option(
    "--remove",
    "remove_count",
    type=click.IntRange(min=0),
    default=0,
    help="Items removed from the source after the first batch.",
)
@click.argument("reads", nargs=-1, type=int)
def simulate(
    total: int,
    batch_size: int,
    delay: float,
    append_count: int,
    remove_count: int,
    reads: Tuple[int, ...],
):
    """Read positions from an array backed by a list of integers.

    The requests sent to the source and the changes reported by the array
    are printed as they happen.
    """
    if total < 0:
        raise click.BadParameter("must be non-negative", param_hint="--total")
    try:
        asyncio.run(
            _simulate(
                total, batch_size, delay, append_count, remove_count, reads
            )
        )
    except InvalidConfiguration as e:
        raise click.BadParameter(
            str(e), param_hint=f"--{e.option.replace('_', '-')}"
        )
    except LoadFailure as e:
        raise click.ClickException(str(e))


async def _simulate(
    total: int,
    batch_size: int,
    delay: float,
    append_count: int,
    remove_count: int,
    reads: Tuple[int, ...],
) -> None:
    loader = ListLoader.of_range(total, delay=delay)
    array = SparseArray.create(
        batch_size=batch_size, load=loader, observers=[EchoObserver()]
    )
    try:
        await array.settle()
        click.echo(f"length={array.length}")

        if append_count:
            loader.append(range(total, total + append_count))
        if remove_count:
            loader.remove_tail(remove_count)

        for index in reads:
            value = array.object_at(index)
            if isinstance(value, Unloaded):
                await array.settle()
                value = array.object_at(index)
            if value is None:
                click.echo(f"[{index}] out of bounds")
            else:
                click.echo(f"[{index}] = {value}")

        click.echo(
            f"length={array.length} loaded={array.loaded_count} "
            f"requests={len(loader.calls)}"
        )
    finally:
        array.dispose()


@cli.command()
@click.argument("index", type=click.IntRange(min=0))
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=DEFAULT_BATCH_SIZE,
    show_default=True,
    envvar=ENV_BATCH_SIZE,
)
@click.option(
    "--loaded",
    "loaded",
    multiple=True,
    help="A START:END range that is already loaded; may be repeated.",
)
def window(index: int, batch_size: int, loaded: Tuple[str, ...]):
    """Print the range that would be requested to load INDEX."""
    ranges: List[Tuple[int, int]] = [_parse_range(text) for text in loaded]

    def is_taken(i: int) -> bool:
        return any(start <= i < end for start, end in ranges)

    if is_taken(index):
        click.echo(f"{index} is already loaded")
        return
    offset, limit = select_window(index, batch_size, is_taken)
    click.echo(f"load({offset}, {limit})")


if __name__ == "__main__":
    cli()
