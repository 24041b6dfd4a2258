# test_errors.py -- Tests for errors.py
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

"""Tests for gitvfs.errors."""

import errno

from gitvfs.errors import (
    BuildFailure,
    BuildPhase,
    DirectoryNotEmpty,
    ObjectTooLarge,
    posix_error,
)

from . import TestCase


class PosixErrorTests(TestCase):
    def test_builtin_classes(self) -> None:
        cases = [
            (errno.ENOENT, FileNotFoundError),
            (errno.EISDIR, IsADirectoryError),
            (errno.ENOTDIR, NotADirectoryError),
            (errno.EEXIST, FileExistsError),
            (errno.EPERM, PermissionError),
        ]
        for code, cls in cases:
            e = posix_error(code, "a/b")
            self.assertIsInstance(e, cls)
            self.assertEqual(code, e.errno)
            self.assertEqual("/a/b", e.filename)

    def test_not_empty(self) -> None:
        e = posix_error(errno.ENOTEMPTY, "dir")
        self.assertIsInstance(e, DirectoryNotEmpty)
        self.assertIsInstance(e, OSError)
        self.assertEqual(errno.ENOTEMPTY, e.errno)

    def test_too_large(self) -> None:
        e = posix_error(errno.EFBIG, "big", "too big")
        self.assertIsInstance(e, ObjectTooLarge)
        self.assertEqual("too big", e.strerror)

    def test_root_filename(self) -> None:
        self.assertEqual("/", posix_error(errno.EPERM, "").filename)


class BuildFailureTests(TestCase):
    def test_phase(self) -> None:
        e = BuildFailure(BuildPhase.HISTORY_IMPORT, "copy failed")
        self.assertIs(BuildPhase.HISTORY_IMPORT, e.phase)
        self.assertEqual("history-import: copy failed", str(e))
