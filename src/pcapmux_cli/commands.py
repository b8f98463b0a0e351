"""
CLI commands that spawn capture sources and multiplex them.
"""
import logging
from typing import List, Sequence, Tuple

import click

from capture.command_source import shell_source, ssh_source
from capture.dummy_source import DummySource
from capture.icapture_source import ISource
from mux.supervisor import Multiplexer

logger = logging.getLogger(__name__)

# Let "--" and tcpdump's own flags through to the command arguments
PASSTHROUGH = dict(ignore_unknown_options=True, allow_interspersed_args=False)


def split_ssh_args(args: Sequence[str]) -> Tuple[List[str], str]:
    """
    Split ``host [host..] -- <command words>`` into hosts and one command.

    Raises:
        click.UsageError: If "--", a host or the command is missing
    """
    args = list(args)
    if '--' not in args:
        raise click.UsageError("Missing '--' or tcpdump command")
    sep = args.index('--')
    hosts, command = args[:sep], args[sep + 1:]
    if not command:
        raise click.UsageError("Missing '--' or tcpdump command")
    if not hosts:
        raise click.UsageError("At least one host is required")
    return hosts, ' '.join(command)


def open_sources(sources: Sequence[ISource]) -> bool:
    """
    Start every source before any streaming begins.

    On the first failure the sources already started are stopped.
    """
    started = []
    for source in sources:
        try:
            source.open()
        except OSError:
            for prev in started:
                prev.terminate()
                prev.close()
            return False
        started.append(source)
    return True


def multiplex(ctx: click.Context, sources: Sequence[ISource], serial_headers: bool = False):
    config = ctx.obj['config']
    config.serial_headers = serial_headers

    # Serial mode spawns each source only after the previous header arrived
    if not serial_headers and not open_sources(sources):
        ctx.exit(1)

    mux = Multiplexer(ctx.obj['output'], config)
    mux.run(sources)
    if mux.aborted:
        ctx.exit(1)
    for stats in mux.summary():
        logger.info("[%s] %s, %d records, error: %s", stats['source'],
                    stats['header'], stats['records_forwarded'], stats['error'])


@click.command(context_settings=PASSTHROUGH)
@click.option('--parallel-headers', is_flag=True,
              help='Start all hosts at once instead of one header at a time')
@click.argument('args', nargs=-1, type=click.UNPROCESSED, required=True)
@click.pass_context
def ssh(ctx, parallel_headers: bool, args: Tuple[str, ...]):
    """
    Capture on several hosts over ssh.

    Examples:
      pcapmux ssh host1 host2 -- tcpdump -i eth0 -U -w -
    """
    hosts, command = split_ssh_args(args)
    sources = [ssh_source(host, command) for host in hosts]
    multiplex(ctx, sources, serial_headers=not parallel_headers)


@click.command(context_settings=PASSTHROUGH)
@click.option('--parallel-headers', is_flag=True,
              help='Start all commands at once instead of one header at a time')
@click.argument('commands', nargs=-1, required=True)
@click.pass_context
def run(ctx, parallel_headers: bool, commands: Tuple[str, ...]):
    """
    Run several local capture commands.

    Examples:
      pcapmux run 'tcpdump -i en0 -U -w -' 'tcpdump -i en1 -U -w -'
    """
    sources = [shell_source(command) for command in commands]
    multiplex(ctx, sources, serial_headers=not parallel_headers)


@click.command()
@click.option('--sources', '-n', type=click.IntRange(min=1), default=2, show_default=True,
              help='Number of synthetic sources')
@click.option('--count', '-c', type=click.IntRange(min=0), default=10, show_default=True,
              help='Packets per source')
@click.option('--seed', type=int, help='Random seed for reproducible output')
@click.pass_context
def dummy(ctx, sources: int, count: int, seed):
    """
    Multiplex synthetic captures (no tcpdump needed).

    Examples:
      pcapmux dummy -n 3 -c 100 > merged.pcap
    """
    dummy_sources = [
        DummySource(f"dummy{i}", count=count,
                    seed=None if seed is None else seed + i)
        for i in range(sources)
    ]
    multiplex(ctx, dummy_sources)
