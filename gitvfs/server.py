# server.py -- Serve repositories over the git smart protocol
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

"""Response bodies for the smart HTTP ``git-upload-pack`` service.

Both responses are computed in a single pass over an already built
repository. There is no negotiation: a pack always holds every object
reachable from HEAD.

Any failure while computing a response is raised as
:class:`gitvfs.errors.PlumbingFailure`; mapping it to an HTTP status is up to
the caller.
"""

__all__ = [
    "CAPABILITIES_REF",
    "DEFAULT_CAPABILITIES",
    "UPLOAD_PACK_SERVICE",
    "advertise_refs",
    "find_reachable_objects",
    "generate_pack",
    "upload_pack_response",
]

import stat
from io import BytesIO

from dulwich.objects import S_ISGITLINK, Commit, Tag, Tree
from dulwich.protocol import (
    CAPABILITY_AGENT,
    CAPABILITY_OFS_DELTA,
    CAPABILITY_SIDE_BAND_64K,
    CAPABILITY_THIN_PACK,
    SIDE_BAND_CHANNEL_DATA,
    ZERO_SHA,
    Protocol,
    pkt_line,
)
from dulwich.refs import HEADREF, LOCAL_BRANCH_PREFIX

from . import __version__, log_utils
from .errors import PlumbingFailure
from .repo import FilesystemRepo

logger = log_utils.getLogger(__name__)

UPLOAD_PACK_SERVICE = b"git-upload-pack"

# Name advertised in place of a ref by a repository without refs
CAPABILITIES_REF = b"capabilities^{}"

AGENT_STRING = b"gitvfs/" + ".".join(map(str, __version__)).encode("ascii")

DEFAULT_CAPABILITIES = [
    CAPABILITY_SIDE_BAND_64K,
    CAPABILITY_THIN_PACK,
    CAPABILITY_OFS_DELTA,
    CAPABILITY_AGENT + b"=" + AGENT_STRING,
]


def _advertised_refs(repo: FilesystemRepo) -> list[tuple[bytes, bytes]]:
    refs = []
    head = repo.resolve_ref(HEADREF)
    if head is not None:
        refs.append((HEADREF, head))
    for branch in repo.list_branches():
        name = LOCAL_BRANCH_PREFIX + branch
        sha = repo.resolve_ref(name)
        if sha is not None:
            refs.append((name, sha))
    return refs


def advertise_refs(
    repo: FilesystemRepo,
    service: bytes = UPLOAD_PACK_SERVICE,
    capabilities: list[bytes] | None = None,
) -> bytes:
    """Build the ``info/refs`` response body for a smart HTTP client.

    Args:
      repo: Repository to advertise
      service: Service the client asked for
      capabilities: Capabilities to announce; defaults to
        DEFAULT_CAPABILITIES, plus the symref of HEAD when it has one
    Returns: The service announcement, a flush-pkt, one pkt-line per ref
      and a final flush-pkt
    Raises:
      PlumbingFailure: if the refs can not be read
    """
    try:
        refs = _advertised_refs(repo)
        if capabilities is None:
            capabilities = list(DEFAULT_CAPABILITIES)
            refnames, head = repo.refs.follow(HEADREF)
            if head is not None and len(refnames) > 1:
                capabilities.append(b"symref=HEAD:" + refnames[-1])
    except Exception as e:
        raise PlumbingFailure(f"unable to read refs: {e}") from e

    # A repository without refs still has to announce its capabilities
    if not refs:
        refs = [(CAPABILITIES_REF, ZERO_SHA)]

    out = [pkt_line(b"# service=" + service + b"\n"), pkt_line(None)]
    for i, (name, sha) in enumerate(refs):
        line = sha + b" " + name
        if i == 0:
            line += b"\0" + b" ".join(capabilities)
        out.append(pkt_line(line + b"\n"))
    out.append(pkt_line(None))
    logger.debug("advertised %d refs", len(refs))
    return b"".join(out)


def find_reachable_objects(repo: FilesystemRepo, head: bytes) -> set[bytes]:
    """Find every object reachable from a commit.

    Commits lead to their tree and parents, trees to their entries and
    annotated tags to the object they tag. Submodule entries are not
    followed, since their commits live in another repository.

    Args:
      repo: Repository to search
      head: Id of the object to start from
    Returns: Set of object ids, each included once
    """
    seen: set[bytes] = set()
    pending = [head]
    while pending:
        sha = pending.pop()
        if sha in seen:
            continue
        seen.add(sha)
        obj = repo[sha]
        if isinstance(obj, Commit):
            pending.append(obj.tree)
            pending.extend(obj.parents)
        elif isinstance(obj, Tree):
            for entry in obj.iteritems():
                if S_ISGITLINK(entry.mode):
                    continue
                if stat.S_ISDIR(entry.mode):
                    pending.append(entry.sha)
                else:
                    seen.add(entry.sha)
        elif isinstance(obj, Tag):
            pending.append(obj.object[1])
    return seen


def _build_head_pack(repo: FilesystemRepo) -> bytes:
    try:
        head = repo.resolve_ref(HEADREF)
    except Exception as e:
        raise PlumbingFailure(f"unable to resolve HEAD: {e}") from e
    if head is None:
        raise PlumbingFailure("HEAD does not point at a commit")
    try:
        object_ids = find_reachable_objects(repo, head)
        pack = repo.build_pack(sorted(object_ids))
    except Exception as e:
        raise PlumbingFailure(f"unable to build pack: {e}") from e
    logger.info(
        "packed %d objects reachable from %s (%d bytes)",
        len(object_ids),
        head.decode("ascii"),
        len(pack),
    )
    return pack


def generate_pack(repo: FilesystemRepo) -> bytes:
    """Pack everything reachable from HEAD as a single side-band data frame.

    Returns: The channel byte for pack data followed by the whole pack
    Raises:
      PlumbingFailure: if HEAD does not resolve or packing fails
    """
    return bytes([SIDE_BAND_CHANNEL_DATA]) + _build_head_pack(repo)


def upload_pack_response(repo: FilesystemRepo) -> bytes:
    """Build a complete ``git-upload-pack`` response body.

    The pack follows a ``NAK`` and is split over side-band-64k pkt-lines,
    which is what git clients expect after announcing side-band-64k.

    Raises:
      PlumbingFailure: if HEAD does not resolve or packing fails
    """
    pack = _build_head_pack(repo)
    f = BytesIO()
    proto = Protocol(f.read, f.write)
    proto.write_pkt_line(b"NAK\n")
    proto.write_sideband(SIDE_BAND_CHANNEL_DATA, pack)
    proto.write_pkt_line(None)
    return f.getvalue()
