# errors.py -- errors for gitvfs
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

"""gitvfs-related exception classes and utility functions.

Filesystem failures are reported with the standard :class:`OSError`
subclasses (``FileNotFoundError``, ``IsADirectoryError`` and friends) so that
code written against the real filesystem, dulwich included, handles them
unchanged. Only the conditions Python has no builtin class for get one here.
"""

import enum
import errno
import os


class DirectoryNotEmpty(OSError):
    """A directory could not be removed because it still has children."""


class ObjectTooLarge(OSError):
    """A file exceeds the per-object size ceiling of a store."""


_ERRNO_CLASSES: dict[int, type[OSError]] = {
    errno.ENOTEMPTY: DirectoryNotEmpty,
    errno.EFBIG: ObjectTooLarge,
}


def posix_error(code: int, path: str, detail: str | None = None) -> OSError:
    """Build the exception for a POSIX error code on a path.

    The builtin ``OSError`` constructor already maps codes like ``ENOENT`` to
    ``FileNotFoundError``; codes without a builtin subclass map to the
    classes defined in this module.

    Args:
      code: errno value
      path: canonical path the error refers to
      detail: Optional message replacing ``os.strerror(code)``
    Returns: An exception instance, ready to raise
    """
    message = detail if detail is not None else os.strerror(code)
    cls = _ERRNO_CLASSES.get(code, OSError)
    return cls(code, message, "/" + path)


class PlumbingFailure(Exception):
    """The git plumbing failed while serving a repository."""


class BuildPhase(enum.Enum):
    """Phases of assembling an ephemeral repository, in execution order."""

    INITIALIZE = "initialize"
    TEMPLATE_COMMIT = "template-commit"
    HISTORY_IMPORT = "history-import"
    REF_REPOINT = "ref-repoint"


class BuildFailure(Exception):
    """Assembling an ephemeral repository failed."""

    def __init__(self, phase: BuildPhase, msg: str) -> None:
        """Initialize a BuildFailure.

        Args:
          phase: The build phase that failed
          msg: Description of the failure
        """
        super().__init__(f"{phase.value}: {msg}")
        self.phase = phase
