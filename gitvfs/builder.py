# builder.py -- Assembly of request scoped repositories
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

"""Build the in-memory repository served to a cloning client.

The repository is assembled in four steps that always run in this order:

1. an empty repository is initialized in a fresh :class:`MemoryFilesystem`;
2. if a template is given, its files are committed as a single base commit;
3. if the session has a repository, its ``.git`` directory is copied over;
4. after a copy, the default branch is moved to the session's HEAD.

The last step only moves a ref: the base commit and the session's commits
stay unrelated histories. When it fails the build still succeeds: the default
branch and HEAD are reset to what step 2 left (the base commit, or no
commit at all) and the result is marked as degraded.
"""

__all__ = [
    "TEMPLATE_AUTHOR",
    "BuildStatus",
    "EphemeralRepo",
    "build_repository",
]

import enum
from collections.abc import Mapping

from dulwich.refs import HEADREF, LOCAL_BRANCH_PREFIX

from . import log_utils
from .errors import BuildFailure, BuildPhase
from .fs import BaseFilesystem, PathLike
from .memfs import MemoryFilesystem
from .repo import CONTROLDIR, DEFAULT_BRANCH, FilesystemRepo, check_working_path
from .session import RepositorySession

logger = log_utils.getLogger(__name__)

TEMPLATE_AUTHOR = b"Template <templates@gitvfs.invalid>"


class BuildStatus(enum.Enum):
    """What an ephemeral repository ended up containing."""

    EMPTY = "empty"
    TEMPLATE_ONLY = "template-only"
    FULL_HISTORY = "full-history"
    DEGRADED = "degraded"


class EphemeralRepo(FilesystemRepo):
    """Repository built for a single request and never persisted."""

    build_status: BuildStatus

    def __init__(self, fs: BaseFilesystem, root: PathLike = "") -> None:
        super().__init__(fs, root)
        self.build_status = BuildStatus.EMPTY


def template_commit_message(name: str | None, query: str | None) -> bytes:
    """Return the message of the base commit for a template."""
    lines = [f"Template: {name or 'unnamed'}", "", "Base template for the application"]
    if query:
        lines.append(f"Query: {query}")
    return "\n".join(lines).encode("utf-8")


def copy_tree(source: BaseFilesystem, target: BaseFilesystem, path: str) -> int:
    """Copy every file below path from one filesystem to another.

    Files already present in target are overwritten.

    Returns: number of files copied
    """
    files = source.export_files(path)
    for filename, contents in files:
        target.write_file(filename, contents)
    return len(files)


def _commit_template(
    repo: EphemeralRepo,
    template: Mapping[str, bytes | str],
    name: str | None,
    query: str | None,
) -> bytes:
    files = [(check_working_path(path), data) for path, data in template.items()]
    for path, contents in files:
        repo.fs.write_file(repo.working_path(path), contents)
    repo.stage(path for path, _ in files)
    return repo.do_commit(
        template_commit_message(name, query),
        committer=TEMPLATE_AUTHOR,
        author=TEMPLATE_AUTHOR,
    )


def _repoint(repo: EphemeralRepo, head: bytes | None, branch: bytes) -> None:
    """Point branch at head and HEAD at branch.

    With no head the branch is removed, leaving HEAD unborn.
    """
    refname = LOCAL_BRANCH_PREFIX + branch
    if head is None:
        repo.refs.remove_if_equals(refname, None)
    else:
        repo.write_ref(refname, head, force=True)
    repo.refs.set_symbolic_ref(HEADREF, refname)


def _session_head(repo: EphemeralRepo, session: RepositorySession) -> bytes:
    head = session.head()
    if head is None:
        raise KeyError(HEADREF)
    if head not in repo:
        raise KeyError(head)
    return head


def build_repository(
    template: Mapping[str, bytes | str] | None = None,
    session: RepositorySession | None = None,
    *,
    template_name: str | None = None,
    query: str | None = None,
    default_branch: bytes = DEFAULT_BRANCH,
) -> EphemeralRepo:
    """Assemble a repository to serve.

    Args:
      template: Files of the base template, by path; an empty mapping is
        treated like no template
      session: Session whose history should be served
      template_name: Template name, for the base commit message
      query: Request that selected the template, for the base commit message
      default_branch: Branch HEAD points at
    Returns: A repository in a new MemoryFilesystem, which may have no
      commits at all
    Raises:
      BuildFailure: if initializing, committing the template or copying
        the session history fails
    """
    fs = MemoryFilesystem()
    try:
        repo = EphemeralRepo.init(fs, default_branch=default_branch)
    except Exception as e:
        raise BuildFailure(BuildPhase.INITIALIZE, str(e)) from e

    base = None
    if template:
        try:
            base = _commit_template(repo, template, template_name, query)
        except Exception as e:
            raise BuildFailure(BuildPhase.TEMPLATE_COMMIT, str(e)) from e
        repo.build_status = BuildStatus.TEMPLATE_ONLY
        logger.info(
            "committed template %s with %d files as %s",
            template_name,
            len(template),
            base.decode("ascii"),
        )

    if session is None or not session.has_repository():
        return repo

    try:
        count = copy_tree(session.fs, fs, CONTROLDIR)
    except Exception as e:
        raise BuildFailure(BuildPhase.HISTORY_IMPORT, str(e)) from e
    logger.info("imported %d files of session history", count)

    try:
        head = _session_head(repo, session)
        _repoint(repo, head, default_branch)
    except Exception as e:
        logger.warning(
            "%s: resetting %s to the base commit: %s",
            BuildPhase.REF_REPOINT.value,
            default_branch.decode("utf-8"),
            e,
        )
        # The copy may have replaced the branch and HEAD written in step 2
        _repoint(repo, base, default_branch)
        repo.build_status = BuildStatus.DEGRADED
    else:
        logger.info(
            "pointed %s at session head %s",
            default_branch.decode("utf-8"),
            head.decode("ascii"),
        )
        repo.build_status = BuildStatus.FULL_HISTORY
    return repo
