# __init__.py -- The tests for gitvfs
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

"""Tests for gitvfs."""

__all__ = [
    "SkipTest",
    "TestCase",
    "expectedFailure",
    "skipIf",
    "test_suite",
]

import os
import unittest
from unittest import SkipTest, expectedFailure, skipIf
from unittest import TestCase as _TestCase

# Variables that change how identities and logging are resolved
_ISOLATED_ENV = (
    "GITVFS_TRACE",
    "GIT_AUTHOR_NAME",
    "GIT_AUTHOR_EMAIL",
    "GIT_COMMITTER_NAME",
    "GIT_COMMITTER_EMAIL",
)


class TestCase(_TestCase):
    """Base class for gitvfs tests, isolated from the user's environment."""

    def setUp(self) -> None:
        super().setUp()
        self.overrideEnv("HOME", "/nonexistent")
        for name in _ISOLATED_ENV:
            self.overrideEnv(name, None)

    def overrideEnv(self, name: str, value: str | None) -> None:
        """Set an environment variable for the duration of the test.

        Args:
          name: Name of the variable
          value: New value, or None to unset it
        """

        def restore(oldvalue: str | None) -> None:
            if oldvalue is None:
                os.environ.pop(name, None)
            else:
                os.environ[name] = oldvalue

        self.addCleanup(restore, os.environ.get(name))
        if value is None:
            os.environ.pop(name, None)
        else:
            os.environ[name] = value


def self_test_suite() -> unittest.TestSuite:
    names = [
        "builder",
        "cli",
        "errors",
        "fs",
        "log_utils",
        "memfs",
        "object_store",
        "refs",
        "repo",
        "server",
        "session",
        "sqlitefs",
    ]
    module_names = ["tests.test_" + name for name in names]
    loader = unittest.TestLoader()
    return loader.loadTestsFromNames(module_names)


def test_suite() -> unittest.TestSuite:
    result = unittest.TestSuite()
    result.addTests(self_test_suite())
    return result
