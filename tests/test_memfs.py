# test_memfs.py -- Tests for memfs.py
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

"""Tests for gitvfs.memfs."""

from gitvfs.memfs import MemoryFilesystem

from . import TestCase
from .test_fs import FilesystemTests


class MemoryFilesystemTests(FilesystemTests, TestCase):
    def make_fs(self) -> MemoryFilesystem:
        return MemoryFilesystem()

    def test_storage_stats(self) -> None:
        self.fs.write_file("a", b"12345")
        self.fs.write_file("b/c", b"12")
        self.fs.mkdir("d")
        stats = self.fs.storage_stats()
        self.assertEqual(2, stats.total_objects)
        self.assertEqual(7, stats.total_bytes)
        self.assertEqual(5, stats.largest_object)

    def test_storage_stats_empty(self) -> None:
        self.assertEqual((0, 0, 0), tuple(self.fs.storage_stats()))

    def test_independent_instances(self) -> None:
        other = MemoryFilesystem()
        self.fs.write_file("a", b"x")
        self.assertFalse(other.exists("a"))
