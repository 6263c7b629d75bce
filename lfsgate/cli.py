# cli.py -- Command line interface for lfsgate
# Copyright (C) 2026 The lfsgate Authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# lfsgate is dual-licensed under the Apache License, Version 2.0 and the GNU
# General Public License as published by the Free Software Foundation; version 2.0
# or (at your option) any later version. You can redistribute it and/or
# modify it under the terms of either of these two licenses.
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# You should have received a copy of the licenses; if not, see
# <http://www.gnu.org/licenses/> for a copy of the GNU General Public License
# and <http://www.apache.org/licenses/LICENSE-2.0> for a copy of the Apache
# License, Version 2.0.
#

"""Command-line interface to the LFS integrity check.

``lfsgate pre-receive`` can be installed directly as a git pre-receive hook::

    #!/bin/sh
    exec lfsgate pre-receive
"""

__all__ = [
    "Command",
    "cmd_check",
    "cmd_pre_receive",
    "main",
]

import argparse
import logging
import signal
import sys
from collections.abc import Sequence
from typing import ClassVar, Optional

from dulwich.errors import HookError, NotBlobError, NotCommitError, NotGitRepository
from dulwich.repo import Repo

from .errors import LFSIntegrityError
from .hooks import LFS_OBJECTS_MISSING, LFSIntegrityHook, parse_ref_updates
from .integrity import IntegrityGate
from .log_utils import default_logging_config
from .scanner import GitRepositoryReader

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISSING = 1
EXIT_ERROR = 2

# Failures of the repository or object stores; reported, never treated as a
# verdict.
COLLABORATOR_ERRORS = (
    KeyError,
    LFSIntegrityError,
    NotBlobError,
    NotCommitError,
    NotGitRepository,
    OSError,
)


class Command:
    """An lfsgate subcommand."""

    description: ClassVar[str] = ""

    def __init__(self, repo_path: str = ".") -> None:
        self.repo_path = repo_path

    def open_repo(self) -> Repo:
        return Repo(self.repo_path)

    def gate_for(self, repo: Repo) -> tuple[IntegrityGate, GitRepositoryReader]:
        try:
            gate = IntegrityGate.from_config(repo.get_config_stack())
        except (ImportError, ValueError) as e:
            # Bad lfs settings, or gevent missing for lfs.checkConcurrency.
            raise LFSIntegrityError(f"invalid LFS configuration: {e}") from e
        return gate, GitRepositoryReader(repo)

    def run(self, args: Sequence[str]) -> int:
        """Run the command."""
        raise NotImplementedError(self.run)


def _report_missing(missing: set[str]) -> None:
    logger.error("%s", LFS_OBJECTS_MISSING)
    for oid in sorted(missing):
        logger.error("  missing: %s", oid)


class cmd_check(Command):
    """Check a single revision range for missing LFS objects."""

    description = "Check a revision range for missing LFS objects"

    def run(self, args: Sequence[str]) -> int:
        parser = argparse.ArgumentParser(prog="lfsgate check", description=self.description)
        parser.add_argument("oldrev", help="Old revision, or the empty tree id")
        parser.add_argument("newrev", help="New revision, or - for a deletion")
        parsed_args = parser.parse_args(args)
        newrev = None if parsed_args.newrev == "-" else parsed_args.newrev
        try:
            with self.open_repo() as repo:
                gate, reader = self.gate_for(repo)
                missing = gate.missing_objects(reader, parsed_args.oldrev, newrev)
        except COLLABORATOR_ERRORS as e:
            logger.error("LFS integrity check failed: %s", e)
            return EXIT_ERROR
        if missing:
            _report_missing(missing)
            return EXIT_MISSING
        return EXIT_OK


class cmd_pre_receive(Command):
    """Check the ref updates of a push, as a pre-receive hook."""

    description = "Check ref updates read from stdin, as a pre-receive hook"

    def run(self, args: Sequence[str]) -> int:
        parser = argparse.ArgumentParser(
            prog="lfsgate pre-receive", description=self.description
        )
        parser.parse_args(args)
        try:
            updates = parse_ref_updates(sys.stdin.buffer)
            with self.open_repo() as repo:
                gate, reader = self.gate_for(repo)
                failed = LFSIntegrityHook(gate, reader).check(updates)
        except HookError as e:
            logger.error("%s", e)
            return EXIT_ERROR
        except COLLABORATOR_ERRORS as e:
            logger.error("LFS integrity check failed: %s", e)
            return EXIT_ERROR
        if failed:
            _report_missing(set().union(*failed.values()))
            return EXIT_MISSING
        return EXIT_OK


commands = {
    "check": cmd_check,
    "pre-receive": cmd_pre_receive,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the lfsgate CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(
        prog="lfsgate",
        description="Reject pushes that reference missing Git LFS objects",
    )
    parser.add_argument(
        "--repo", default=".", help="Path to the repository (default: current directory)"
    )
    parser.add_argument(
        "command",
        nargs="?",
        help=f"Command to run. Available: {', '.join(sorted(commands))}",
    )
    global_args, remaining = parser.parse_known_args(argv)
    if global_args.command is None:
        parser.print_help()
        return EXIT_MISSING

    default_logging_config()

    try:
        cmd_kls = commands[global_args.command]
    except KeyError:
        logger.fatal("No such subcommand: %s", global_args.command)
        return EXIT_MISSING
    return cmd_kls(global_args.repo).run(remaining)


def _main() -> None:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    sys.exit(main())


if __name__ == "__main__":
    _main()
