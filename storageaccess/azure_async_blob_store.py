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

from azure.core.exceptions import AzureError, ResourceNotFoundError

from .azure_blob_store import BlobRef, handle_storage_errors
from .azure_copy_operation import CopyOperationState

_LOGGER = logging.getLogger(__name__)


class AsyncBlobStore(object):
    """Blob operations over an azure.storage.blob.aio.BlobServiceClient.

    Same capability as :class:`storageaccess.azure_blob_store.BlobStore`,
    every operation is a coroutine and list_blobs is an async generator.
    """

    def __init__(self, service_client):
        self.service_client = service_client

    @property
    def account_name(self):
        return self.service_client.account_name

    async def list_blobs(self, container, name_starts_with=None):
        container_client = self.service_client.get_container_client(container)
        pages = container_client.list_blobs(name_starts_with=name_starts_with).by_page()
        try:
            async for page in pages:
                async for blob in page:
                    yield blob.name
        except AzureError:
            handle_storage_errors(container)

    def get_blob_ref(self, container, name):
        return BlobRef(container, name)

    def _blob_client(self, blob_ref):
        return self.service_client.get_blob_client(blob_ref.container, blob_ref.name)

    async def exists(self, blob_ref):
        try:
            return await self._blob_client(blob_ref).exists()
        except AzureError:
            handle_storage_errors(blob_ref)

    async def upload_text(self, blob_ref, text, encoding='utf-8'):
        try:
            await self._blob_client(blob_ref).upload_blob(text.encode(encoding), overwrite=True)
        except AzureError:
            handle_storage_errors(blob_ref)

    async def download_text(self, blob_ref, encoding='utf-8'):
        try:
            downloader = await self._blob_client(blob_ref).download_blob(encoding=encoding)
            return await downloader.readall()
        except AzureError:
            handle_storage_errors(blob_ref)

    async def start_copy(self, dest_ref, source_ref):
        source_url = self._blob_client(source_ref).url
        try:
            response = await self._blob_client(dest_ref).start_copy_from_url(source_url)
        except AzureError:
            handle_storage_errors(dest_ref)
        _LOGGER.debug("Copy %s started from '%s' to '%s'", response.get('copy_id'), source_ref, dest_ref)
        return CopyOperationState.from_copy_response(dest_ref, response)

    async def fetch_copy_state(self, blob_ref):
        try:
            properties = await self._blob_client(blob_ref).get_blob_properties()
        except AzureError:
            handle_storage_errors(blob_ref)
        return CopyOperationState.from_properties(blob_ref, properties)

    async def delete_if_exists(self, blob_ref):
        try:
            await self._blob_client(blob_ref).delete_blob()
        except ResourceNotFoundError:
            return False
        except AzureError:
            handle_storage_errors(blob_ref)
        return True

    async def close(self):
        await self.service_client.close()

    async def __aenter__(self):
        await self.service_client.__aenter__()
        return self

    async def __aexit__(self, *exc_details):
        await self.service_client.__aexit__(*exc_details)
