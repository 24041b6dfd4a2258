# test_fs.py -- Tests for fs.py
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

"""Tests for gitvfs.fs, and the contract every store must follow."""

import errno
import stat

from gitvfs.errors import DirectoryNotEmpty
from gitvfs.fs import (
    BaseFilesystem,
    ancestors,
    basename,
    make_stat,
    normalize_path,
    parent_path,
)

from . import TestCase


class PathTests(TestCase):
    def test_normalize(self) -> None:
        self.assertEqual("a/b/c", normalize_path("/a//b/./c/"))
        self.assertEqual("a/b", normalize_path("a/b"))
        self.assertEqual("x", normalize_path("/../x"))
        self.assertEqual("a/c", normalize_path("a/b/../c"))
        self.assertEqual("", normalize_path("/"))
        self.assertEqual("", normalize_path(""))
        self.assertEqual("a", normalize_path("//a"))
        self.assertEqual("a/b", normalize_path(b"/a/b"))

    def test_parent_path(self) -> None:
        self.assertEqual("a/b", parent_path("a/b/c"))
        self.assertEqual("", parent_path("a"))

    def test_basename(self) -> None:
        self.assertEqual("c", basename("a/b/c"))
        self.assertEqual("a", basename("a"))

    def test_ancestors(self) -> None:
        self.assertEqual(["a", "a/b"], ancestors("a/b/c"))
        self.assertEqual([], ancestors("a"))

    def test_make_stat(self) -> None:
        st = make_stat(stat.S_IFREG | 0o644, 12, 1500.5)
        self.assertTrue(stat.S_ISREG(st.st_mode))
        self.assertEqual(12, st.st_size)
        self.assertEqual(1500.5, st.st_mtime)


class FilesystemTests:
    """Contract tests, mixed into a TestCase for each store."""

    fs: BaseFilesystem

    def make_fs(self) -> BaseFilesystem:
        raise NotImplementedError(self.make_fs)

    def setUp(self) -> None:
        super().setUp()  # type: ignore[misc]
        self.fs = self.make_fs()

    def test_root_exists(self) -> None:
        self.assertTrue(self.fs.isdir(""))
        self.assertTrue(self.fs.isdir("/"))
        self.assertEqual([], self.fs.readdir(""))

    def test_write_read(self) -> None:
        self.fs.write_file("a.txt", b"hello")
        self.assertEqual(b"hello", self.fs.read_file("a.txt"))
        self.assertEqual(b"hello", self.fs.read_file("/a.txt"))

    def test_write_str(self) -> None:
        self.fs.write_file("a.txt", "hé")
        self.assertEqual("hé".encode(), self.fs.read_file("a.txt"))

    def test_overwrite(self) -> None:
        self.fs.write_file("a.txt", b"one")
        self.fs.write_file("a.txt", b"two")
        self.assertEqual(b"two", self.fs.read_file("a.txt"))
        self.assertEqual(["a.txt"], self.fs.readdir(""))

    def test_binary_contents(self) -> None:
        data = bytes(range(256))
        self.fs.write_file("bin", data)
        self.assertEqual(data, self.fs.read_file("bin"))

    def test_write_creates_ancestors(self) -> None:
        self.fs.write_file("a/b/c.txt", b"x")
        self.assertTrue(self.fs.isdir("a"))
        self.assertTrue(self.fs.isdir("a/b"))
        self.assertTrue(self.fs.isfile("a/b/c.txt"))

    def test_readdir_immediate_children(self) -> None:
        self.fs.write_file("a/b/c.txt", b"x")
        self.fs.write_file("a/d.txt", b"y")
        self.fs.write_file("e.txt", b"z")
        self.assertEqual(["a", "e.txt"], sorted(self.fs.readdir("")))
        self.assertEqual(["b", "d.txt"], sorted(self.fs.readdir("a")))
        self.assertEqual(["c.txt"], self.fs.readdir("a/b"))

    def test_read_missing(self) -> None:
        with self.assertRaises(FileNotFoundError) as cm:
            self.fs.read_file("missing")
        self.assertEqual(errno.ENOENT, cm.exception.errno)

    def test_read_directory(self) -> None:
        self.fs.mkdir("d")
        self.assertRaises(IsADirectoryError, self.fs.read_file, "d")

    def test_readdir_missing(self) -> None:
        self.assertRaises(FileNotFoundError, self.fs.readdir, "missing")

    def test_readdir_file(self) -> None:
        self.fs.write_file("f", b"")
        self.assertRaises(FileNotFoundError, self.fs.readdir, "f")

    def test_write_over_directory(self) -> None:
        self.fs.mkdir("d")
        self.assertRaises(IsADirectoryError, self.fs.write_file, "d", b"x")
        self.assertTrue(self.fs.isdir("d"))

    def test_write_root(self) -> None:
        self.assertRaises(IsADirectoryError, self.fs.write_file, "/", b"x")

    def test_write_below_file(self) -> None:
        self.fs.write_file("f", b"x")
        with self.assertRaises(NotADirectoryError):
            self.fs.write_file("f/new/g", b"y")
        self.assertFalse(self.fs.exists("f/new"))
        self.assertEqual(b"x", self.fs.read_file("f"))

    def test_unlink(self) -> None:
        self.fs.write_file("a/f", b"x")
        self.fs.unlink("a/f")
        self.assertFalse(self.fs.exists("a/f"))
        self.assertEqual([], self.fs.readdir("a"))

    def test_unlink_missing(self) -> None:
        self.assertRaises(FileNotFoundError, self.fs.unlink, "missing")

    def test_unlink_directory(self) -> None:
        self.fs.mkdir("d")
        self.assertRaises(PermissionError, self.fs.unlink, "d")
        self.assertTrue(self.fs.isdir("d"))

    def test_mkdir(self) -> None:
        self.fs.mkdir("d")
        self.assertTrue(self.fs.isdir("d"))
        self.fs.mkdir("d")
        self.assertTrue(self.fs.isdir("d"))

    def test_mkdir_over_file(self) -> None:
        self.fs.write_file("f", b"x")
        self.assertRaises(FileExistsError, self.fs.mkdir, "f")

    def test_mkdir_missing_parent(self) -> None:
        self.assertRaises(FileNotFoundError, self.fs.mkdir, "a/b")
        self.assertFalse(self.fs.exists("a"))

    def test_rmdir(self) -> None:
        self.fs.mkdir("d")
        self.fs.rmdir("d")
        self.assertFalse(self.fs.exists("d"))

    def test_rmdir_not_empty(self) -> None:
        self.fs.write_file("d/f", b"x")
        with self.assertRaises(DirectoryNotEmpty) as cm:
            self.fs.rmdir("d")
        self.assertEqual(errno.ENOTEMPTY, cm.exception.errno)
        self.assertTrue(self.fs.isfile("d/f"))

    def test_rmdir_file(self) -> None:
        self.fs.write_file("f", b"x")
        self.assertRaises(NotADirectoryError, self.fs.rmdir, "f")

    def test_rmdir_missing(self) -> None:
        self.assertRaises(FileNotFoundError, self.fs.rmdir, "missing")

    def test_rmdir_root(self) -> None:
        self.assertRaises(PermissionError, self.fs.rmdir, "")

    def test_stat(self) -> None:
        self.fs.write_file("d/f", b"abc")
        st = self.fs.stat("d/f")
        self.assertTrue(stat.S_ISREG(st.st_mode))
        self.assertEqual(3, st.st_size)
        self.assertGreater(st.st_mtime, 0)
        self.assertTrue(stat.S_ISDIR(self.fs.stat("d").st_mode))
        self.assertEqual(st, self.fs.lstat("d/f"))

    def test_stat_sizes(self) -> None:
        for size in range(6):
            self.fs.write_file("f", b"x" * size)
            self.assertEqual(size, self.fs.stat("f").st_size)

    def test_stat_missing(self) -> None:
        self.assertRaises(FileNotFoundError, self.fs.stat, "missing")
        self.assertFalse(self.fs.exists("missing"))
        self.assertFalse(self.fs.isdir("missing"))
        self.assertFalse(self.fs.isfile("missing"))

    def test_symlink(self) -> None:
        self.fs.symlink("target/file", "link")
        self.assertEqual("target/file", self.fs.readlink("link"))
        self.assertTrue(self.fs.isfile("link"))

    def test_makedirs(self) -> None:
        self.fs.makedirs("a/b/c")
        self.assertTrue(self.fs.isdir("a/b/c"))
        self.fs.makedirs("a/b/c")
        self.fs.makedirs("")

    def test_walk_files(self) -> None:
        self.fs.write_file("a/b/c", b"1")
        self.fs.write_file("a/d", b"2")
        self.fs.write_file("e", b"3")
        self.fs.mkdir("empty")
        self.assertEqual(["a/b/c", "a/d", "e"], sorted(self.fs.walk_files()))
        self.assertEqual(["a/b/c", "a/d"], sorted(self.fs.walk_files("a")))
        self.assertEqual(["e"], list(self.fs.walk_files("e")))

    def test_walk_files_missing(self) -> None:
        self.assertRaises(FileNotFoundError, list, self.fs.walk_files("missing"))

    def test_export_files(self) -> None:
        self.fs.write_file(".git/refs/heads/main", b"1")
        self.fs.write_file(".git/HEAD", b"2")
        self.fs.write_file("work.txt", b"3")
        self.assertEqual(
            [(".git/HEAD", b"2"), (".git/refs/heads/main", b"1")],
            self.fs.export_files(),
        )
        self.assertEqual(
            [(".git/HEAD", b"2"), (".git/refs/heads/main", b"1"), ("work.txt", b"3")],
            self.fs.export_files(""),
        )
        self.assertEqual([("work.txt", b"3")], self.fs.export_files("work.txt"))

    def test_export_files_missing(self) -> None:
        self.assertRaises(FileNotFoundError, self.fs.export_files, "missing")
