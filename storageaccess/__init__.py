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

from .version import VERSION
from .azure_cloud import AZURE_PUBLIC_CLOUD, AZURE_CHINA_CLOUD, AZURE_US_GOV_CLOUD
from .azure_credentials import (
    AuthMode,
    ConnectionStringCredentials,
    SasTokenCredentials,
    AppRegistrationCredentials,
    ManagedIdentityCredentials,
    resolve)
from .azure_blob_store import BlobRef, BlobStore
from .azure_async_blob_store import AsyncBlobStore
from .azure_copy_operation import CopyStatus, CopyOperationState
from .azure_copy_poller import BlobCopyPoller, rename_blob
from .azure_async_copy_poller import AsyncBlobCopyPoller, rename_blob_async

__all__ = [
    'AZURE_PUBLIC_CLOUD',
    'AZURE_CHINA_CLOUD',
    'AZURE_US_GOV_CLOUD',
    'AuthMode',
    'ConnectionStringCredentials',
    'SasTokenCredentials',
    'AppRegistrationCredentials',
    'ManagedIdentityCredentials',
    'resolve',
    'BlobRef',
    'BlobStore',
    'AsyncBlobStore',
    'CopyStatus',
    'CopyOperationState',
    'BlobCopyPoller',
    'rename_blob',
    'AsyncBlobCopyPoller',
    'rename_blob_async',
]

__version__ = VERSION
