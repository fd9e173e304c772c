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

from msrest.exceptions import ClientException, AuthenticationError


class AuthError(AuthenticationError):
    """Credentials could not be turned into a blob store handle."""


class InvalidConnectionString(AuthError):
    pass


class InvalidSasToken(AuthError):
    pass


class TokenAcquisitionFailed(AuthError):
    """The identity provider did not hand out a token."""


class RenameError(ClientException):
    """Base error of the rename-via-copy workflow."""


class SourceNotFound(RenameError):
    """The blob to rename does not exist.

    :param str container: Container name.
    :param str blob_name: Name of the missing source blob.
    """

    def __init__(self, container, blob_name, inner_exception=None):
        self.container = container
        self.blob_name = blob_name
        message = "Source blob '{}/{}' does not exist".format(container, blob_name)
        super(SourceNotFound, self).__init__(message, inner_exception)


class CopyFailed(RenameError):
    """Server-side copy ended in a state other than success.

    :param status: Terminal copy status, None if the destination
     reported no copy operation at all.
    :param str status_description: Description sent back by the service.
    """

    def __init__(self, status, status_description=None, inner_exception=None):
        self.status = status
        self.status_description = status_description
        message = "Copy operation ended with status '{}'".format(
            getattr(status, 'value', status))
        if status_description:
            message += ": {}".format(status_description)
        super(CopyFailed, self).__init__(message, inner_exception)


class CopyTimedOut(RenameError):
    """Copy was still pending when the deadline expired.

    :param float timeout: Configured timeout in seconds.
    :param status: Last observed copy status.
    """

    def __init__(self, timeout, status=None, inner_exception=None):
        self.timeout = timeout
        self.status = status
        message = "Copy operation still pending after {} seconds".format(timeout)
        super(CopyTimedOut, self).__init__(message, inner_exception)


class StorageIOError(ClientException):
    """A blob operation failed.

    :param str message: Error message.
    :param blob_ref: Reference of the blob (or container) involved, if known.
    """

    def __init__(self, message, inner_exception=None, blob_ref=None):
        self.blob_ref = blob_ref
        super(StorageIOError, self).__init__(message, inner_exception)


class BlobNotFound(StorageIOError):
    pass


class PermissionDenied(StorageIOError):
    pass


class TransientError(StorageIOError):
    """Network or throttling error, the caller may decide to try again."""
