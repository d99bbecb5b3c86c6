#!/usr/bin/env python3
"""Convenience entry point.

The implementation lives in the `veritas_scan` package; this wrapper allows
running the CLI straight from a checkout.
"""

from veritas_scan.cli import main as _main


if __name__ == "__main__":
    raise SystemExit(_main())
