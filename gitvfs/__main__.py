"""Entry point for running gitvfs as a module.

This module allows gitvfs to be run as a Python module using the -m flag:
    python -m gitvfs
"""

from . import cli

if __name__ == "__main__":
    cli._main()
