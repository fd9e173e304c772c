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

import base64
import binascii
import logging
from collections import namedtuple
from enum import Enum
from urllib.parse import parse_qs

from azure.storage.blob import BlobServiceClient
from azure.storage.blob.aio import BlobServiceClient as AsyncBlobServiceClient

from .azure_active_directory import (
    AsyncStorageTokenCredential,
    MSIAuthentication,
    ServicePrincipalAuthentication,
    StorageTokenCredential)
from .azure_async_blob_store import AsyncBlobStore
from .azure_blob_store import BlobStore
from .azure_cloud import AZURE_PUBLIC_CLOUD
from .azure_exceptions import InvalidConnectionString, InvalidSasToken

_LOGGER = logging.getLogger(__name__)

# Well-known account of the local storage emulator (Azurite)
DEVELOPMENT_STORAGE_CONNECTION_STRING = (
    "DefaultEndpointsProtocol=http;"
    "AccountName=devstoreaccount1;"
    "AccountKey=Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw==;"
    "BlobEndpoint=http://127.0.0.1:10000/devstoreaccount1;")


class AuthMode(Enum):
    CONNECTION_STRING = 'connection_string'
    SAS_TOKEN = 'sas_token'
    APP_REGISTRATION = 'app_registration'
    MANAGED_IDENTITY = 'managed_identity'


def _masked_repr(creds, secret_fields):
    items = ("{}={!r}".format(k, '***' if k in secret_fields and v else v)
             for k, v in zip(creds._fields, creds))
    return "{}({})".format(type(creds).__name__, ", ".join(items))


class ConnectionStringCredentials(namedtuple(
        'ConnectionStringCredentials', ['account_name', 'account_key', 'connection_string'])):
    """Account key credentials, either as a name/key pair or as a fully
    composed connection string."""
    __slots__ = ()
    mode = AuthMode.CONNECTION_STRING

    def __new__(cls, account_name=None, account_key=None, connection_string=None):
        if connection_string and (account_name or account_key):
            raise ValueError("Give either a connection string or an account name and key, not both")
        return super(ConnectionStringCredentials, cls).__new__(
            cls, account_name, account_key, connection_string)

    @classmethod
    def from_connection_string(cls, connection_string):
        return cls(connection_string=connection_string)

    @classmethod
    def development_storage(cls):
        """Credentials of the local storage emulator."""
        return cls(connection_string="UseDevelopmentStorage=true")

    def to_connection_string(self, cloud_environment=AZURE_PUBLIC_CLOUD):
        if self.connection_string:
            return self.connection_string
        if not self.account_name or not self.account_key:
            raise InvalidConnectionString(
                "Either a connection string or an account name and key are required")
        return "DefaultEndpointsProtocol=https;AccountName={};AccountKey={};EndpointSuffix={}".format(
            self.account_name, self.account_key, cloud_environment.suffixes.storage_endpoint)

    def __repr__(self):
        return _masked_repr(self, ('account_key', 'connection_string'))


class SasTokenCredentials(namedtuple('SasTokenCredentials', ['account_name', 'sas_token'])):
    """Shared access signature of an account, expected to grant read/write."""
    __slots__ = ()
    mode = AuthMode.SAS_TOKEN

    def __repr__(self):
        return _masked_repr(self, ('sas_token',))


class AppRegistrationCredentials(namedtuple(
        'AppRegistrationCredentials', ['account_name', 'client_id', 'client_secret', 'authority'])):
    """Client ID/secret of an app registration.

    :param str authority: e.g. 'https://login.microsoftonline.com/contoso.com',
     None to use the cloud's AAD endpoint and the 'common' tenant.
    """
    __slots__ = ()
    mode = AuthMode.APP_REGISTRATION

    def __new__(cls, account_name, client_id, client_secret, authority=None):
        return super(AppRegistrationCredentials, cls).__new__(
            cls, account_name, client_id, client_secret, authority)

    def __repr__(self):
        return _masked_repr(self, ('client_secret',))


class ManagedIdentityCredentials(namedtuple(
        'ManagedIdentityCredentials', ['account_name', 'resource', 'client_id'])):
    """Ambient identity of the host, no secret involved.

    :param str resource: Token audience, None for the cloud's storage resource.
    :param str client_id: Client ID of a user assigned identity, None for
     the system assigned one.
    """
    __slots__ = ()
    mode = AuthMode.MANAGED_IDENTITY

    def __new__(cls, account_name, resource=None, client_id=None):
        return super(ManagedIdentityCredentials, cls).__new__(
            cls, account_name, resource, client_id)


def parse_connection_string(connection_string):
    """Split a connection string into its settings, keys lowercased.

    :param str connection_string: 'Key1=Value1;Key2=Value2;...'
    :raises: InvalidConnectionString if a segment is not key=value.
    :rtype: dict
    """
    if not connection_string or not connection_string.strip():
        raise InvalidConnectionString("Connection string is empty")
    settings = {}
    for index, segment in enumerate(connection_string.split(';')):
        segment = segment.strip()
        if not segment:
            continue
        key, sep, value = segment.partition('=')
        if not sep or not key.strip():
            # Never echo the segment, it may hold a key
            raise InvalidConnectionString(
                "Connection string segment #{} is not a key=value pair".format(index))
        settings[key.strip().lower()] = value.strip()
    return settings


def validate_connection_string(connection_string):
    """Check a connection string carries usable blob credentials.

    :returns: The connection string to hand to the SDK, with the
     development storage shortcut expanded.
    :raises: InvalidConnectionString
    """
    settings = parse_connection_string(connection_string)
    if settings.get('usedevelopmentstorage', '').lower() == 'true':
        return DEVELOPMENT_STORAGE_CONNECTION_STRING

    if settings.get('sharedaccesssignature'):
        if settings.get('accountname') or settings.get('blobendpoint'):
            return connection_string
        raise InvalidConnectionString(
            "SharedAccessSignature requires AccountName or BlobEndpoint")

    if not settings.get('accountname') or not settings.get('accountkey'):
        raise InvalidConnectionString("Connection string requires AccountName and AccountKey")
    try:
        base64.b64decode(settings['accountkey'], validate=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidConnectionString("AccountKey is not valid base64", err) from err
    return connection_string


def validate_sas_token(sas_token):
    """Check a SAS token looks like one.

    :returns: The token without leading '?'.
    :raises: InvalidSasToken
    """
    token = (sas_token or '').strip().lstrip('?').rstrip('&')
    if not token:
        raise InvalidSasToken("SAS token is empty")
    try:
        fields = parse_qs(token, keep_blank_values=True, strict_parsing=True)
    except ValueError as err:
        raise InvalidSasToken("SAS token is not a query string", err) from err
    missing = [name for name in ('sv', 'sig') if not fields.get(name, [''])[0]]
    if missing:
        raise InvalidSasToken("SAS token lacks required field(s): {}".format(", ".join(missing)))
    permissions = fields.get('sp', [''])[0]
    if permissions and not ('r' in permissions and 'w' in permissions):
        _LOGGER.warning("SAS token permissions '%s' do not grant both read and write", permissions)
    return token


def _build_store(account_url, credential, aio):
    if aio:
        return AsyncBlobStore(AsyncBlobServiceClient(account_url, credential=credential))
    return BlobStore(BlobServiceClient(account_url, credential=credential))


def _resolve_connection_string(credentials, cloud_environment, aio, **kwargs):
    connection_string = validate_connection_string(
        credentials.to_connection_string(cloud_environment))
    client_class = AsyncBlobServiceClient if aio else BlobServiceClient
    try:
        client = client_class.from_connection_string(connection_string)
    except ValueError as err:
        raise InvalidConnectionString("Connection string is malformed: {}".format(err), err) from err
    return AsyncBlobStore(client) if aio else BlobStore(client)


def _resolve_sas_token(credentials, cloud_environment, aio, **kwargs):
    if not credentials.account_name:
        raise InvalidSasToken("An account name is required with a SAS token")
    token = validate_sas_token(credentials.sas_token)
    return _build_store(cloud_environment.blob_account_url(credentials.account_name), token, aio)


def _token_credential(access_token, aio):
    if aio:
        return AsyncStorageTokenCredential(access_token)
    return StorageTokenCredential(access_token)


def _require_account_name(credentials):
    # Checked before any token request goes out
    if not credentials.account_name:
        raise ValueError("An account name is required with auth mode '{}'".format(
            credentials.mode.value))


def _resolve_app_registration(credentials, cloud_environment, aio, **kwargs):
    _require_account_name(credentials)
    auth = ServicePrincipalAuthentication(
        credentials.client_id, credentials.client_secret, credentials.authority,
        cloud_environment=cloud_environment, **kwargs)
    return _build_store(cloud_environment.blob_account_url(credentials.account_name),
                        _token_credential(auth.access_token(), aio), aio)


def _resolve_managed_identity(credentials, cloud_environment, aio, **kwargs):
    _require_account_name(credentials)
    auth = MSIAuthentication(resource=credentials.resource, client_id=credentials.client_id,
                             cloud_environment=cloud_environment, timeout=kwargs.get('timeout'))
    return _build_store(cloud_environment.blob_account_url(credentials.account_name),
                        _token_credential(auth.access_token(), aio), aio)


_RESOLVERS = {
    AuthMode.CONNECTION_STRING: _resolve_connection_string,
    AuthMode.SAS_TOKEN: _resolve_sas_token,
    AuthMode.APP_REGISTRATION: _resolve_app_registration,
    AuthMode.MANAGED_IDENTITY: _resolve_managed_identity,
}


def resolve(mode, credentials, cloud_environment=AZURE_PUBLIC_CLOUD, aio=False, **kwargs):
    """Turn credentials into an authenticated blob store.

    APP_REGISTRATION and MANAGED_IDENTITY perform exactly one token
    request, the other modes make no network call.

    Optional kwargs, used by the token requests, may include:

    - timeout (int): Timeout of the request in seconds.
    - proxies (dict): Proxies of the AAD request.
    - verify (bool): Verify secure connection to AAD, default is 'True'.
    - tenant (str): Tenant used when the app registration has no authority.

    :param AuthMode mode: Authentication mode, or its string value.
    :param credentials: Credentials matching the mode.
    :param cloud_environment: Targeted cloud.
    :param bool aio: Build an AsyncBlobStore instead of a BlobStore.
    :rtype: BlobStore or AsyncBlobStore
    :raises: ValueError if the credentials do not match the mode, or a
     token mode lacks the account name.
    :raises: InvalidConnectionString, InvalidSasToken, TokenAcquisitionFailed
    """
    mode = AuthMode(mode)
    if getattr(credentials, 'mode', None) is not mode:
        raise ValueError("{} cannot be used with auth mode '{}'".format(
            type(credentials).__name__, mode.value))
    _LOGGER.debug("Resolving blob store for account '%s' with auth mode '%s'",
                  credentials.account_name, mode.value)
    return _RESOLVERS[mode](credentials, cloud_environment, aio, **kwargs)
