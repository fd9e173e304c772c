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
import os
import time
from urllib.parse import urlparse

from azure.core.credentials import AccessToken
from oauthlib.oauth2 import BackendApplicationClient
from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from requests import RequestException
import requests
import requests_oauthlib as oauth

from .azure_cloud import AZURE_PUBLIC_CLOUD
from .azure_exceptions import TokenAcquisitionFailed

_LOGGER = logging.getLogger(__name__)

STORAGE_RESOURCE = "https://storage.azure.com/"
STORAGE_SCOPE = STORAGE_RESOURCE + ".default"

IMDS_TOKEN_URI = "http://169.254.169.254/metadata/identity/oauth2/token"
IMDS_API_VERSION = "2018-02-01"
APP_SERVICE_API_VERSION = "2019-08-01"


def _build_url(uri, paths, scheme):
    """Combine URL parts.

    :param str uri: The base URL.
    :param list paths: List of strings that make up the URL.
    :param str scheme: The URL scheme, 'http' or 'https'.
    :rtype: str
    :return: Combined, formatted URL.
    """
    path = [str(p).strip('/') for p in paths]
    combined_path = '/'.join(p for p in path if p)
    parsed_url = urlparse(uri)
    replaced = parsed_url._replace(scheme=scheme)
    if combined_path:
        path = '/'.join([replaced.path.rstrip('/'), combined_path])
        replaced = replaced._replace(path=path)

    new_url = replaced.geturl()
    new_url = new_url.replace('///', '//')
    return new_url


def _https(uri, *extra):
    """Convert http URL to https.

    :param str uri: The base URL.
    :param str extra: Additional URL paths (optional).
    :rtype: str
    :return: An HTTPS URL.
    """
    return _build_url(uri, extra, 'https')


def _to_access_token(token_entry):
    """Build an azure-core AccessToken out of a raw token response.

    AAD v2 answers with 'expires_in' (to which oauthlib adds 'expires_at'),
    managed identity endpoints answer with 'expires_on'.

    :param dict token_entry: Token response body.
    :rtype: azure.core.credentials.AccessToken
    """
    if token_entry.get('expires_on'):
        expires_on = int(float(token_entry['expires_on']))
    elif token_entry.get('expires_at'):
        expires_on = int(float(token_entry['expires_at']))
    else:
        expires_on = int(time.time()) + int(float(token_entry.get('expires_in', 0)))
    return AccessToken(token_entry['access_token'], expires_on)


class ServicePrincipalAuthentication(object):
    """Confidential client authentication of an app registration.
    Authenticates via a Client ID and Secret and requests a storage scoped
    token with a single client_credentials grant.

    Optional kwargs may include:

    - cloud_environment (storageaccess.azure_cloud.Cloud): A targeted cloud environment
    - tenant (str): Tenant used when no authority is given, default is 'common'.
    - token_uri (str): Alternative token retrieval endpoint.
    - scope (str): Alternative scope, default is 'https://storage.azure.com/.default'.
    - verify (bool): Verify secure connection, default is 'True'.
    - timeout (int): Timeout of the request in seconds.
    - proxies (dict): Dictionary mapping protocol or protocol and
      hostname to the URL of the proxy.

    :param str client_id: Client ID.
    :param str secret: Client secret.
    :param str authority: Authority URL, e.g. 'https://login.microsoftonline.com/contoso.com'.
    """
    _token_uri = "/oauth2/v2.0/token"
    _tenant = "common"

    def __init__(self, client_id, secret, authority=None, **kwargs):
        self.id = client_id
        self.secret = secret
        self._configure(authority, **kwargs)

        self.token = None
        self.client = BackendApplicationClient(client_id=self.id)
        self.set_token()

    def _configure(self, authority, **kwargs):
        self.cloud_environment = kwargs.get('cloud_environment', AZURE_PUBLIC_CLOUD)
        if not authority:
            authority = _https(self.cloud_environment.endpoints.active_directory,
                               kwargs.get('tenant', self._tenant))
        self.authority = authority
        self.token_uri = kwargs.get('token_uri', _https(authority, self._token_uri))
        self.scope = kwargs.get('scope', STORAGE_SCOPE)
        self.verify = kwargs.get('verify', True)
        self.proxies = kwargs.get('proxies')
        self.timeout = kwargs.get('timeout')

    def _setup_session(self):
        """Create token-friendly Requests session.

        :rtype: requests_oauthlib.OAuth2Session
        """
        return oauth.OAuth2Session(client=self.client)

    def set_token(self):
        """Get token using Client ID/Secret credentials.

        :raises: TokenAcquisitionFailed if credentials invalid, or call fails.
        """
        _LOGGER.debug("AAD: Retrieving a token for client '%s' from %s", self.id, self.token_uri)
        with self._setup_session() as session:
            try:
                token = session.fetch_token(self.token_uri,
                                            client_secret=self.secret,
                                            include_client_id=True,
                                            scope=[self.scope],
                                            verify=self.verify,
                                            timeout=self.timeout,
                                            proxies=self.proxies)
            except (RequestException, OAuth2Error) as err:
                raise TokenAcquisitionFailed(
                    "Unable to acquire a token for client '{}': {}".format(self.id, err),
                    err) from err
            else:
                self.token = token

    def access_token(self):
        """Return the acquired token as an azure-core AccessToken.

        :rtype: azure.core.credentials.AccessToken
        """
        return _to_access_token(self.token)


def _request_msi_token(request_uri, params, headers, timeout):
    try:
        _LOGGER.debug("MSI: Retrieving a token from %s", request_uri)
        result = requests.get(request_uri, params=params, headers=headers, timeout=timeout)
        result.raise_for_status()
        token_entry = result.json()
        return token_entry['token_type'], token_entry['access_token'], token_entry
    except (RequestException, ValueError, KeyError) as ex:
        _LOGGER.warning("MSI: Failed to retrieve a token from '%s' with an error of '%s'.",
                        request_uri, ex)
        raise TokenAcquisitionFailed(
            "MSI: Failed to retrieve a token from '{}': {}".format(request_uri, ex), ex) from ex


def get_msi_token(resource, client_id=None, timeout=None):
    """Get MSI token from the instance metadata service of a VM/VMSS.

    :param str resource: The resource where the token would be use.
    :param str client_id: Client ID of a user assigned identity (if not
     specified, assume System Assigned)
    :param int timeout: Timeout of the request in seconds.
    :raises: TokenAcquisitionFailed if the endpoint is unreachable or refuses.
    """
    params = {'api-version': IMDS_API_VERSION, 'resource': resource}
    if client_id:
        params['client_id'] = client_id
    return _request_msi_token(IMDS_TOKEN_URI, params, {'Metadata': 'true'}, timeout)


def get_msi_token_webapp(resource, client_id=None, timeout=None):
    """Get a MSI token from inside a webapp or functions.

    Env variable will look like:

    - IDENTITY_ENDPOINT = http://127.0.0.1:41741/MSI/token/
    - IDENTITY_HEADER = 69418689F1E342DD946CB82994CDA3CB
    """
    try:
        identity_endpoint = os.environ['IDENTITY_ENDPOINT']
        identity_header = os.environ['IDENTITY_HEADER']
    except KeyError as err:
        err_msg = "{} required env variable was not found.".format(err)
        _LOGGER.warning(err_msg)
        raise TokenAcquisitionFailed(err_msg, err) from err
    params = {'api-version': APP_SERVICE_API_VERSION, 'resource': resource}
    if client_id:
        params['client_id'] = client_id
    return _request_msi_token(identity_endpoint, params,
                              {'X-IDENTITY-HEADER': identity_header}, timeout)


def _is_app_service():
    return 'IDENTITY_ENDPOINT' in os.environ and 'IDENTITY_HEADER' in os.environ


class MSIAuthentication(object):
    """Managed identity authentication. No secret is involved, the
    token comes from the ambient identity endpoint of the host.

    Optional kwargs may include:

    - client_id: Client id of a user assigned identity.
    - cloud_environment (storageaccess.azure_cloud.Cloud): A targeted cloud environment
    - resource (str): Alternative authentication resource, default
      is 'https://storage.azure.com/'.
    - timeout (int): Timeout of the request in seconds.
    """

    def __init__(self, **kwargs):
        self.client_id = kwargs.get('client_id')
        self.cloud_environment = kwargs.get('cloud_environment', AZURE_PUBLIC_CLOUD)
        self.resource = kwargs.get('resource') or self.cloud_environment.endpoints.storage_resource_id
        self.timeout = kwargs.get('timeout')
        self.token = None
        self.set_token()

    def set_token(self):
        if _is_app_service():
            _, _, self.token = get_msi_token_webapp(
                self.resource, self.client_id, self.timeout)
        else:
            _, _, self.token = get_msi_token(
                self.resource, self.client_id, self.timeout)
        _LOGGER.debug('MSI: token retrieved')

    def access_token(self):
        return _to_access_token(self.token)


class StorageTokenCredential(object):
    """azure-core TokenCredential serving an already acquired bearer token.

    The token is not refreshed: once it expires the store has to be
    resolved again.

    :param azure.core.credentials.AccessToken access_token: The token.
    """

    def __init__(self, access_token):
        self._access_token = access_token

    def get_token(self, *scopes, **kwargs):  # pylint: disable=unused-argument
        return self._access_token


class AsyncStorageTokenCredential(object):
    """Async flavour of :class:`StorageTokenCredential`."""

    def __init__(self, access_token):
        self._access_token = access_token

    async def get_token(self, *scopes, **kwargs):  # pylint: disable=unused-argument
        return self._access_token

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()
