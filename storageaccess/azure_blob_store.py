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
from collections import namedtuple

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    HttpResponseError,
    ResourceNotFoundError,
    ServiceRequestError,
    ServiceResponseError)

from .azure_copy_operation import CopyOperationState
from .azure_exceptions import (
    BlobNotFound,
    PermissionDenied,
    StorageIOError,
    TransientError)

_LOGGER = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset([408, 429, 500, 502, 503, 504])
DENIED_STATUS_CODES = frozenset([401, 403])


class BlobRef(namedtuple('BlobRef', ['container', 'name'])):
    """Reference to a blob inside a container."""
    __slots__ = ()

    def __str__(self):
        return "{}/{}".format(self.container, self.name)


def handle_storage_errors(blob_ref=None):
    """Translate the azure-core error being handled into a StorageIOError.

    Must be called from an except block.
    """
    try:
        raise  # pylint: disable=misplaced-bare-raise
    except ResourceNotFoundError as err:
        raise BlobNotFound("'{}' not found".format(blob_ref), err, blob_ref=blob_ref) from err
    except ClientAuthenticationError as err:
        raise PermissionDenied(
            "Access to '{}' denied: {}".format(blob_ref, err.message), err, blob_ref=blob_ref) from err
    except (ServiceRequestError, ServiceResponseError) as err:
        raise TransientError(
            "Connection error on '{}': {}".format(blob_ref, err.message), err, blob_ref=blob_ref) from err
    except HttpResponseError as err:
        if err.status_code in DENIED_STATUS_CODES:
            raise PermissionDenied(
                "Access to '{}' denied: {}".format(blob_ref, err.message), err, blob_ref=blob_ref) from err
        if err.status_code in TRANSIENT_STATUS_CODES:
            raise TransientError(
                "Service unavailable for '{}': {}".format(blob_ref, err.message), err, blob_ref=blob_ref) from err
        raise StorageIOError(
            "Operation on '{}' failed: {}".format(blob_ref, err.message), err, blob_ref=blob_ref) from err
    except AzureError as err:
        raise StorageIOError(
            "Operation on '{}' failed: {}".format(blob_ref, err.message), err, blob_ref=blob_ref) from err


class BlobStore(object):
    """Blob operations over an authenticated BlobServiceClient.

    Every credential mode resolves to this type, downstream code does
    not need to know how the client was authenticated.

    :param azure.storage.blob.BlobServiceClient service_client: The client.
    """

    def __init__(self, service_client):
        self.service_client = service_client

    @property
    def account_name(self):
        return self.service_client.account_name

    def list_blobs(self, container, name_starts_with=None):
        """Lazily list blob names, page by page.

        :param str container: Container name.
        :param str name_starts_with: Optional name prefix filter.
        :rtype: iterator of str
        """
        container_client = self.service_client.get_container_client(container)
        pages = container_client.list_blobs(name_starts_with=name_starts_with).by_page()
        _LOGGER.debug("Listing blobs of '%s'", container)
        try:
            for page in pages:
                for blob in page:
                    yield blob.name
        except AzureError:
            handle_storage_errors(container)

    def get_blob_ref(self, container, name):
        return BlobRef(container, name)

    def _blob_client(self, blob_ref):
        return self.service_client.get_blob_client(blob_ref.container, blob_ref.name)

    def exists(self, blob_ref):
        try:
            return self._blob_client(blob_ref).exists()
        except AzureError:
            handle_storage_errors(blob_ref)

    def upload_text(self, blob_ref, text, encoding='utf-8'):
        """Upload text as a block blob, overwriting any existing blob."""
        try:
            self._blob_client(blob_ref).upload_blob(text.encode(encoding), overwrite=True)
        except AzureError:
            handle_storage_errors(blob_ref)

    def download_text(self, blob_ref, encoding='utf-8'):
        try:
            return self._blob_client(blob_ref).download_blob(encoding=encoding).readall()
        except AzureError:
            handle_storage_errors(blob_ref)

    def start_copy(self, dest_ref, source_ref):
        """Start a server-side copy. Returns once the service accepted it.

        :rtype: CopyOperationState
        """
        source_url = self._blob_client(source_ref).url
        try:
            response = self._blob_client(dest_ref).start_copy_from_url(source_url)
        except AzureError:
            handle_storage_errors(dest_ref)
        _LOGGER.debug("Copy %s started from '%s' to '%s'", response.get('copy_id'), source_ref, dest_ref)
        return CopyOperationState.from_copy_response(dest_ref, response)

    def fetch_copy_state(self, blob_ref):
        """Fetch the copy state of a blob.

        :returns: The copy state, or None if the blob has no copy metadata.
        :rtype: CopyOperationState
        """
        try:
            properties = self._blob_client(blob_ref).get_blob_properties()
        except AzureError:
            handle_storage_errors(blob_ref)
        return CopyOperationState.from_properties(blob_ref, properties)

    def delete_if_exists(self, blob_ref):
        """Delete a blob.

        :returns: True if a blob was deleted, False if there was none.
        """
        try:
            self._blob_client(blob_ref).delete_blob()
        except ResourceNotFoundError:
            return False
        except AzureError:
            handle_storage_errors(blob_ref)
        return True

    def close(self):
        self.service_client.close()

    def __enter__(self):
        self.service_client.__enter__()
        return self

    def __exit__(self, *exc_details):
        self.service_client.__exit__(*exc_details)
