# cli.py -- Command line interface for gitvfs
# Copyright (C) 2026 The gitvfs authors
#
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later
# gitvfs is dual-licensed under the Apache License, Version 2.0 and the GNU
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

"""Simple command-line interface to gitvfs.

Every command operates on a workspace stored in a SQLite database, given
with ``--db``. This is mostly useful for inspecting a workspace and for
checking what a git client would be sent.
"""

__all__ = ["Command", "format_bytes", "main"]

import argparse
import logging
import os
import sys
from collections.abc import Sequence
from datetime import datetime, timezone

from .builder import EphemeralRepo, build_repository
from .log_utils import default_logging_config
from .server import advertise_refs, upload_pack_response
from .session import DEFAULT_LOG_LIMIT, RepositorySession
from .sqlitefs import SqliteFilesystem


def format_bytes(bytes: float) -> str:
    """Format bytes as human-readable string.

    Args:
        bytes: Number of bytes

    Returns:
        Human-readable string like "1.5 KB"
    """
    for unit in ["B", "KB", "MB", "GB"]:
        if bytes < 1024.0:
            return f"{bytes:.1f} {unit}"
        bytes /= 1024.0
    return f"{bytes:.1f} TB"


def _read_local_tree(path: str) -> dict[str, bytes]:
    """Read every file below a local directory, keyed by relative path."""
    files = {}
    for dirpath, dirnames, filenames in os.walk(path):
        dirnames[:] = [d for d in dirnames if d != ".git"]
        for filename in filenames:
            full = os.path.join(dirpath, filename)
            relpath = os.path.relpath(full, path).replace(os.path.sep, "/")
            with open(full, "rb") as f:
                files[relpath] = f.read()
    return files


class Command:
    """A gitvfs subcommand."""

    def run(self, args: Sequence[str]) -> int | None:
        """Run the command."""
        raise NotImplementedError(self.run)

    def _parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(prog=f"gitvfs {self.name}")
        parser.add_argument(
            "--db", required=True, help="SQLite database holding the workspace"
        )
        parser.add_argument(
            "--table", default="git_objects", help="Table holding the workspace"
        )
        return parser

    @property
    def name(self) -> str:
        return self.__class__.__name__[len("cmd_") :].replace("_", "-")

    def _open(self, parsed_args: argparse.Namespace) -> SqliteFilesystem:
        return SqliteFilesystem(parsed_args.db, table=parsed_args.table)


class cmd_init(Command):
    """Create the repository of a workspace, if it does not exist yet."""

    def run(self, args: Sequence[str]) -> None:
        parsed_args = self._parser().parse_args(args)
        with self._open(parsed_args) as fs:
            RepositorySession(fs).init()


class cmd_commit(Command):
    """Commit local files into a workspace."""

    def run(self, args: Sequence[str]) -> int | None:
        """Execute the commit command.

        Args:
            args: Command line arguments
        """
        parser = self._parser()
        parser.add_argument("-m", "--message", help="Commit message")
        parser.add_argument("--author", help="Author as 'Name <email>'")
        parser.add_argument(
            "--from",
            dest="source",
            default=os.curdir,
            help="Local directory the file names are relative to",
        )
        parser.add_argument("files", nargs="+", help="Files to commit")
        parsed_args = parser.parse_args(args)

        files = {}
        for name in parsed_args.files:
            with open(os.path.join(parsed_args.source, name), "rb") as f:
                files[name.replace(os.path.sep, "/")] = f.read()
        with self._open(parsed_args) as fs:
            session = RepositorySession(fs, author=parsed_args.author)
            sha = session.commit(files, parsed_args.message)
        if sha is None:
            sys.stdout.write("nothing to commit\n")
            return 1
        sys.stdout.write(sha.decode("ascii") + "\n")
        return None


class cmd_log(Command):
    """Show the commit history of a workspace."""

    def run(self, args: Sequence[str]) -> None:
        parser = self._parser()
        parser.add_argument(
            "-n",
            "--max-count",
            type=int,
            default=DEFAULT_LOG_LIMIT,
            help="Number of commits to show",
        )
        parsed_args = parser.parse_args(args)
        with self._open(parsed_args) as fs:
            entries = RepositorySession(fs).log(parsed_args.max_count)
        for entry in entries:
            when = datetime.fromtimestamp(entry.timestamp / 1000, timezone.utc)
            sys.stdout.write(f"commit {entry.sha.decode('ascii')}\n")
            sys.stdout.write(f"Author: {entry.author}\n")
            sys.stdout.write(f"Date:   {when.isoformat()}\n\n")
            for line in entry.message.splitlines():
                sys.stdout.write(f"    {line}\n")
            sys.stdout.write("\n")


class cmd_ls(Command):
    """List a directory of a workspace."""

    def run(self, args: Sequence[str]) -> None:
        parser = self._parser()
        parser.add_argument("path", nargs="?", default="", help="Directory to list")
        parsed_args = parser.parse_args(args)
        with self._open(parsed_args) as fs:
            for name in sorted(fs.readdir(parsed_args.path)):
                child = f"{parsed_args.path.rstrip('/')}/{name}".lstrip("/")
                suffix = "/" if fs.isdir(child) else ""
                sys.stdout.write(name + suffix + "\n")


class cmd_stats(Command):
    """Show how much storage a workspace uses."""

    def run(self, args: Sequence[str]) -> None:
        parsed_args = self._parser().parse_args(args)
        with self._open(parsed_args) as fs:
            stats = fs.storage_stats()
        sys.stdout.write(f"Objects:        {stats.total_objects}\n")
        sys.stdout.write(f"Total size:     {format_bytes(stats.total_bytes)}\n")
        sys.stdout.write(f"Largest object: {format_bytes(stats.largest_object)}\n")


class _ServeCommand(Command):
    def _build(self, args: Sequence[str]) -> EphemeralRepo:
        parser = self._parser()
        parser.add_argument(
            "--template", help="Local directory with template files to include"
        )
        parser.add_argument("--template-name", help="Name of the template")
        parsed_args = parser.parse_args(args)
        template = None
        if parsed_args.template:
            template = _read_local_tree(parsed_args.template)
        fs = self._open(parsed_args)
        try:
            return build_repository(
                template,
                RepositorySession(fs),
                template_name=parsed_args.template_name,
            )
        finally:
            fs.close()


class cmd_info_refs(_ServeCommand):
    """Write the smart HTTP ref advertisement of a workspace to stdout."""

    def run(self, args: Sequence[str]) -> None:
        sys.stdout.buffer.write(advertise_refs(self._build(args)))
        sys.stdout.buffer.flush()


class cmd_upload_pack(_ServeCommand):
    """Write the smart HTTP upload-pack response of a workspace to stdout."""

    def run(self, args: Sequence[str]) -> None:
        sys.stdout.buffer.write(upload_pack_response(self._build(args)))
        sys.stdout.buffer.flush()


commands = {
    "commit": cmd_commit,
    "info-refs": cmd_info_refs,
    "init": cmd_init,
    "log": cmd_log,
    "ls": cmd_ls,
    "stats": cmd_stats,
    "upload-pack": cmd_upload_pack,
}


def main(argv: Sequence[str] | None = None) -> int | None:
    """Main entry point for the gitvfs CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code or None
    """
    if argv is None:
        argv = sys.argv[1:]

    if not argv or argv[0] in ("-h", "--help"):
        sys.stdout.write(
            "usage: gitvfs <command> [<args>]\n\n"
            f"Available commands: {', '.join(sorted(commands))}\n"
        )
        return 1

    default_logging_config()

    cmd, cmd_args = argv[0], argv[1:]
    try:
        cmd_kls = commands[cmd]
    except KeyError:
        logging.fatal("No such subcommand: %s", cmd)
        return 1
    return cmd_kls().run(cmd_args)


def _main() -> None:
    sys.exit(main())


if __name__ == "__main__":
    _main()
