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

import logging
import time

from .azure_copy_operation import finished, raise_for_copy_status
from .azure_exceptions import CopyTimedOut, SourceNotFound

_LOGGER = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.1


class BlobCopyPoller(object):
    """Initiates a server-side copy and polls the destination until the
    copy is no longer pending.

    :param store: The blob store (BlobStore or compatible).
    :param BlobRef source_ref: Blob to copy from.
    :param BlobRef dest_ref: Blob to copy to.
    :param float interval: Time in seconds to wait between status calls,
        default is 0.1.
    :param float timeout: Maximum time in seconds to wait for the copy,
        None to wait forever.
    """

    def __init__(self, store, source_ref, dest_ref, interval=DEFAULT_POLL_INTERVAL, timeout=None):
        self._store = store
        self._source_ref = source_ref
        self._dest_ref = dest_ref
        self._interval = interval
        self._timeout = timeout

        self._state = store.start_copy(dest_ref, source_ref)
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def _delay(self):
        time.sleep(self._interval)

    def _expired(self):
        return self._deadline is not None and time.monotonic() >= self._deadline

    def _poll(self):
        """Poll status of the copy so long as it is pending.

        :raises: CopyTimedOut if the deadline expires first.
        """
        while not self.done():
            if self._expired():
                raise CopyTimedOut(self._timeout, self.status())
            self._delay()
            self._state = self._store.fetch_copy_state(self._dest_ref)
            _LOGGER.debug("Copy to '%s' is %s", self._dest_ref, self.status())

    def status(self):
        """Returns the current copy status.

        :rtype: CopyStatus
        """
        return self._state.status if self._state is not None else None

    def done(self):
        return self._state is None or finished(self._state.status)

    def result(self):
        """Wait for the copy and return its final state.

        :rtype: CopyOperationState
        :raises: CopyFailed if the copy was aborted or failed.
        :raises: CopyTimedOut if the copy outlived the timeout.
        """
        self._poll()
        raise_for_copy_status(self._state)
        return self._state


def rename_blob(store, container, source_name, dest_name,
                poll_interval=DEFAULT_POLL_INTERVAL, timeout=None, missing_ok=True):
    """Rename a blob: server-side copy to the new name, then delete the source.

    The source is deleted only once the copy reports success. A missing
    source is a no-op unless missing_ok is False, so running the same
    rename twice is harmless.

    :param store: The blob store.
    :param str container: Container holding both blobs.
    :param str source_name: Current blob name.
    :param str dest_name: New blob name.
    :param float poll_interval: Seconds between copy status checks.
    :param float timeout: Seconds to wait for the copy, None for no limit.
    :param bool missing_ok: Whether a missing source is silently ignored.
    :returns: The final copy state, None if nothing was renamed.
    :raises: SourceNotFound, CopyFailed, CopyTimedOut, StorageIOError
    """
    if source_name == dest_name:
        raise ValueError("Source and destination are the same blob: '{}'".format(source_name))

    source_ref = store.get_blob_ref(container, source_name)
    dest_ref = store.get_blob_ref(container, dest_name)

    if not store.exists(source_ref):
        if not missing_ok:
            raise SourceNotFound(container, source_name)
        _LOGGER.info("'%s' does not exist, nothing to rename", source_ref)
        return None

    _LOGGER.debug("Renaming '%s' to '%s'", source_ref, dest_ref)
    state = BlobCopyPoller(store, source_ref, dest_ref, poll_interval, timeout).result()
    store.delete_if_exists(source_ref)
    _LOGGER.info("Renamed '%s' to '%s'", source_ref, dest_ref)
    return state
