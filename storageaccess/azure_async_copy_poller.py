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

import asyncio
import logging
import time

from .azure_copy_operation import finished, raise_for_copy_status
from .azure_copy_poller import DEFAULT_POLL_INTERVAL
from .azure_exceptions import CopyTimedOut, SourceNotFound

_LOGGER = logging.getLogger(__name__)


class AsyncBlobCopyPoller(object):
    """Async version of :class:`storageaccess.azure_copy_poller.BlobCopyPoller`.

    The copy is started by :meth:`start`, the poll interval is spent in
    asyncio.sleep so the event loop keeps running.
    """

    def __init__(self, store, source_ref, dest_ref, interval=DEFAULT_POLL_INTERVAL, timeout=None):
        self._store = store
        self._source_ref = source_ref
        self._dest_ref = dest_ref
        self._interval = interval
        self._timeout = timeout
        self._state = None
        self._deadline = None

    async def start(self):
        self._state = await self._store.start_copy(self._dest_ref, self._source_ref)
        if self._timeout is not None:
            self._deadline = time.monotonic() + self._timeout

    async def _delay(self):
        await asyncio.sleep(self._interval)

    def _expired(self):
        return self._deadline is not None and time.monotonic() >= self._deadline

    async def _poll(self):
        while not self.done():
            if self._expired():
                raise CopyTimedOut(self._timeout, self.status())
            await self._delay()
            self._state = await self._store.fetch_copy_state(self._dest_ref)
            _LOGGER.debug("Copy to '%s' is %s", self._dest_ref, self.status())

    def status(self):
        return self._state.status if self._state is not None else None

    def done(self):
        return self._state is None or finished(self._state.status)

    async def result(self):
        await self._poll()
        raise_for_copy_status(self._state)
        return self._state


async def rename_blob_async(store, container, source_name, dest_name,
                            poll_interval=DEFAULT_POLL_INTERVAL, timeout=None, missing_ok=True):
    """Rename a blob through an AsyncBlobStore.

    See :func:`storageaccess.azure_copy_poller.rename_blob`.
    """
    if source_name == dest_name:
        raise ValueError("Source and destination are the same blob: '{}'".format(source_name))

    source_ref = store.get_blob_ref(container, source_name)
    dest_ref = store.get_blob_ref(container, dest_name)

    if not await store.exists(source_ref):
        if not missing_ok:
            raise SourceNotFound(container, source_name)
        _LOGGER.info("'%s' does not exist, nothing to rename", source_ref)
        return None

    poller = AsyncBlobCopyPoller(store, source_ref, dest_ref, poll_interval, timeout)
    await poller.start()
    state = await poller.result()
    await store.delete_if_exists(source_ref)
    _LOGGER.info("Renamed '%s' to '%s'", source_ref, dest_ref)
    return state
