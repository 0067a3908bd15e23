#!/usr/bin/env python3
"""xbisect CLI - automated git bisect over a list of named steps."""

import asyncio
import contextlib
import sys

from pydantic import Field
from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from xbisect.command.clean import CleanCommand
from xbisect.command.import_ import ImportCommand
from xbisect.command.run import RunCommand
from xbisect.core.config import State
from xbisect.core.log import logger


class CliState(State):
    """Automated git bisect.

    Import a project once, then bisect it between a good and a bad
    revision with a script that is run once per named step. Every
    bisect runs in a fresh copy of the project, so the imported
    clone is never touched.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.bisect.failure-policy skip)
    2. Environment variables
       (XBISECT_CONFIG__BISECT__SKIP_EXIT_CODE=125)
    3. .env file
    4. --include files, then xbisect.yaml in the current directory,
       then the user config directory, then package defaults
    """

    run: CliSubCommand[RunCommand]
    import_: CliSubCommand[ImportCommand] = Field(alias="import")
    clean: CliSubCommand[CleanCommand]

    def cli_cmd(self):
        """Dispatch to active subcommand, or show help if none
        provided."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            # argparse exits 0 after printing help
            with contextlib.suppress(SystemExit):
                CliApp.run(CliState, cli_args=["--help"])
            sys.exit(1)

        # Close log files on the way out
        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
