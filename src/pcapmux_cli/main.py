"""
pcapmux CLI - main entry point.
"""
import logging
import sys

import click

from mux.config import MuxConfig
from models.frame import DEFAULT_MAX_PAYLOAD
from .commands import ssh, run, dummy

LOG_FORMAT = '%(asctime)s %(levelname)s %(message)s'


def log_level(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


@click.group()
@click.option('--verbose', '-v', is_flag=True,
              help='Set log level to INFO (default is WARNING)')
@click.option('--debug', '-d', is_flag=True,
              help='Set log level to DEBUG, overrides -v')
@click.option('--output', '-o', type=click.File('wb'), default='-',
              help='Where to write the merged pcap stream (default: stdout)')
@click.option('--max-payload', type=click.IntRange(min=1), default=DEFAULT_MAX_PAYLOAD,
              show_default=True, help='Largest packet record accepted from a source')
@click.option('--no-flush', is_flag=True, help='Do not flush the output after every packet')
@click.pass_context
def cli(ctx, verbose, debug, output, max_payload, no_flush):
    """pcapmux - merge live pcap streams from several captures into one.

    \b
    Examples:
      pcapmux ssh host1 host2 -- tcpdump -i eth0 -U -w - | wireshark -k -i -
      pcapmux run 'tcpdump -i en0 -U -w -' 'tcpdump -i en1 -U -w -' > both.pcap
    """
    # stdout carries pcap bytes, diagnostics must stay on stderr
    logging.basicConfig(
        level=log_level(verbose, debug),
        stream=sys.stderr,
        format=LOG_FORMAT,
    )
    ctx.ensure_object(dict)
    ctx.obj['output'] = output
    ctx.obj['config'] = MuxConfig(max_payload=max_payload, flush=not no_flush)


cli.add_command(ssh)
cli.add_command(run)
cli.add_command(dummy)

if __name__ == "__main__":
    cli()
