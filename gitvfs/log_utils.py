# log_utils.py -- Logging utilities for gitvfs
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

"""Logging utilities for gitvfs.

gitvfs is mostly embedded in a larger service, so by default nothing is
printed: the package logger carries a handler that drops every record.
The command line calls :func:`default_logging_config` instead.

Modules only need ``getLogger``, which is re-exported here for convenience.
"""

import logging
import os
import sys

getLogger = logging.getLogger

TRACE_ENV_VAR = "GITVFS_TRACE"

TRACE_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"


class _NullHandler(logging.Handler):
    """No-op logging handler to avoid unexpected logging warnings."""

    def emit(self, record: logging.LogRecord) -> None:
        pass


_NULL_HANDLER = _NullHandler()
_GITVFS_LOGGER = getLogger("gitvfs")
_GITVFS_LOGGER.addHandler(_NULL_HANDLER)


def trace_file() -> str | None:
    """Return the file GITVFS_TRACE sends debug output to.

    Returns: "-" for stderr (values "1" and "true"), an absolute path, or
      None when tracing is off
    """
    value = os.environ.get(TRACE_ENV_VAR, "")
    if value.lower() in ("1", "true"):
        return "-"
    if os.path.isabs(value):
        return value
    return None


def default_logging_config() -> None:
    """Set up logging for command line use.

    Messages at INFO and above go to stderr. With GITVFS_TRACE set, every
    message down to DEBUG goes to the trace file instead, timestamped and
    tagged with the module that logged it.
    """
    _GITVFS_LOGGER.removeHandler(_NULL_HANDLER)

    target = trace_file()
    if target is None:
        logging.basicConfig(level=logging.INFO, stream=sys.stderr, format="%(message)s")
    elif target == "-":
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format=TRACE_FORMAT)
    else:
        logging.basicConfig(
            level=logging.DEBUG, filename=target, filemode="a", format=TRACE_FORMAT
        )
