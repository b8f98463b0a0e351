#!/usr/bin/env python
"""
pcapmux launcher - run from a source checkout without installing.
"""
import sys
import os

# Add src to path
current_dir = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(current_dir, 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from pcapmux_cli.main import cli

if __name__ == "__main__":
    cli()
