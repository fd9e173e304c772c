# --------------------------------------------------------------------------
#
# Copyright (c) Microsoft Corporation. All rights reserved.
#
# The MIT License (MIT)
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the ""Software""), to
# deal in the Software without restriction, including without limitation the
# rights to use, copy, modify, merge, publish, distribute, sublicense, and/or
# sell copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED *AS IS*, WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
# FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS
# IN THE SOFTWARE.
#
# --------------------------------------------------------------------------

from collections import namedtuple
from enum import Enum

from .azure_exceptions import CopyFailed, StorageIOError


class CopyStatus(Enum):
    """Status of a server-side copy, as reported by the blob service."""

    PENDING = 'pending'
    SUCCESS = 'success'
    ABORTED = 'aborted'
    FAILED = 'failed'


FINISHED = frozenset(['success', 'aborted', 'failed'])
FAILED = frozenset(['aborted', 'failed'])
SUCCEEDED = frozenset(['success'])


def finished(status):
    if hasattr(status, 'value'):
        status = status.value
    return str(status).lower() in FINISHED


def failed(status):
    if hasattr(status, 'value'):
        status = status.value
    return str(status).lower() in FAILED


def succeeded(status):
    if hasattr(status, 'value'):
        status = status.value
    return str(status).lower() in SUCCEEDED


def parse_copy_status(status, blob_ref=None):
    """Convert a raw status string into a CopyStatus.

    :param str status: Status string, e.g. 'pending'.
    :raises: StorageIOError if the service sent an unknown status.
    :rtype: CopyStatus
    """
    if isinstance(status, CopyStatus):
        return status
    try:
        return CopyStatus(str(status).lower())
    except ValueError as err:
        raise StorageIOError(
            "Unrecognized copy status '{}'".format(status), err, blob_ref=blob_ref) from err


_CopyOperationState = namedtuple(
    '_CopyOperationState',
    ['target', 'status', 'copy_id', 'source', 'progress', 'status_description'])


class CopyOperationState(_CopyOperationState):
    """Snapshot of a server-side copy targeting a blob.

    :param BlobRef target: The destination blob.
    :param CopyStatus status: Current status.
    :param str copy_id: Identifier given by the service to the copy.
    :param str source: URL of the copy source, if known.
    :param str progress: 'bytes copied/total bytes', if known.
    :param str status_description: Failure details, if any.
    """
    __slots__ = ()

    def __new__(cls, target, status, copy_id=None, source=None, progress=None,
                status_description=None):
        status = parse_copy_status(status, blob_ref=target)
        return super(CopyOperationState, cls).__new__(
            cls, target, status, copy_id, source, progress, status_description)

    @classmethod
    def from_copy_response(cls, target, response):
        """Build the initial state from the response of a start copy call.

        :param BlobRef target: The destination blob.
        :param dict response: Response of BlobClient.start_copy_from_url.
        """
        return cls(target, response['copy_status'], copy_id=response.get('copy_id'))

    @classmethod
    def from_properties(cls, target, properties):
        """Build the state from the copy properties of a blob.

        :param BlobRef target: The blob the properties belong to.
        :param properties: azure.storage.blob.BlobProperties
        :returns: The copy state, or None if the blob was never the
         target of a copy.
        """
        copy = properties.copy
        if copy is None or copy.status is None:
            return None
        return cls(target, copy.status, copy_id=copy.id, source=copy.source,
                   progress=copy.progress, status_description=copy.status_description)


def raise_for_copy_status(state):
    """Check a finished copy operation.

    :param CopyOperationState state: Final state, None if the destination
     reports no copy.
    :raises: CopyFailed unless the copy succeeded.
    """
    if state is None:
        raise CopyFailed(None, "Destination blob reports no copy operation")
    if state.status is CopyStatus.SUCCESS:
        return
    if state.status in (CopyStatus.ABORTED, CopyStatus.FAILED):
        raise CopyFailed(state.status, state.status_description)
    raise CopyFailed(state.status, "Copy operation is not finished")
