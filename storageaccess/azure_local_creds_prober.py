#--------------------------------------------------------------------------
#
# Copyright (c) Microsoft Corporation. All rights reserved.
#
# The MIT License (MIT)
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the ""Software""), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED *AS IS*, WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.
#
#--------------------------------------------------------------------------


import logging
import os

from .azure_cloud import AZURE_PUBLIC_CLOUD, get_cloud_from_name
from .azure_credentials import (
    AppRegistrationCredentials,
    AuthMode,
    ConnectionStringCredentials,
    ManagedIdentityCredentials,
    SasTokenCredentials,
    resolve)

_LOGGER = logging.getLogger(__name__)

AUTH_MODE_ENV = 'STORAGE_AUTH_MODE'
CLOUD_ENV = 'AZURE_CLOUD'

#pylint: disable=too-few-public-methods


class CredsProber(object):
    """Base prober, reads credentials from an environment mapping.

    :param dict environ: Mapping to read from, default is os.environ.
    :param cloud_environment: Cloud used to build default authorities.
    """

    def __init__(self, environ=None, cloud_environment=AZURE_PUBLIC_CLOUD):
        self.enabled = True
        self.environ = os.environ if environ is None else environ
        self.cloud_environment = cloud_environment

    def _get(self, name):
        return self.environ.get(name) or None

    def probe(self, required=False):
        raise NotImplementedError()


class ConnectionStrEnvProber(CredsProber):
    '''
    Detect environment variable AZURE_STORAGE_CONNECTION_STRING, or
    AZURE_STORAGE_ACCOUNT and AZURE_STORAGE_KEY
    '''
    def probe(self, required=False):
        if not self.enabled:
            return None
        connection_string = self._get('AZURE_STORAGE_CONNECTION_STRING')
        if connection_string:
            return ConnectionStringCredentials.from_connection_string(connection_string)
        account_name, account_key = self._get('AZURE_STORAGE_ACCOUNT'), self._get('AZURE_STORAGE_KEY')
        if account_name and account_key:
            return ConnectionStringCredentials(account_name, account_key)
        if required:
            raise ValueError('Environment variables of AZURE_STORAGE_CONNECTION_STRING, or'
                             ' AZURE_STORAGE_ACCOUNT and AZURE_STORAGE_KEY must be set')
        return None


class SasTokenEnvProber(CredsProber):
    '''
    Detect environment variables AZURE_STORAGE_ACCOUNT and AZURE_STORAGE_SAS_TOKEN
    '''
    def probe(self, required=False):
        if not self.enabled:
            return None
        account_name, sas_token = self._get('AZURE_STORAGE_ACCOUNT'), self._get('AZURE_STORAGE_SAS_TOKEN')
        if account_name and sas_token:
            return SasTokenCredentials(account_name, sas_token)
        if required:
            raise ValueError('Environment variables of AZURE_STORAGE_ACCOUNT and'
                             ' AZURE_STORAGE_SAS_TOKEN must be set')
        return None


class ServicePrincipalEnvProber(CredsProber):
    '''
    Detect environment variables AZURE_CLIENT_ID, AZURE_CLIENT_SECRET and
    AZURE_AUTHORITY (or AZURE_TENANT_ID)
    '''
    def probe(self, required=False):
        if not self.enabled:
            return None
        client_id = self._get('AZURE_CLIENT_ID')
        if not client_id:
            if required:
                raise ValueError('Environment variable AZURE_CLIENT_ID must be set')
            return None
        client_secret, account_name = self._get('AZURE_CLIENT_SECRET'), self._get('AZURE_STORAGE_ACCOUNT')
        authority, tenant_id = self._get('AZURE_AUTHORITY'), self._get('AZURE_TENANT_ID')
        if not client_secret or not account_name or not (authority or tenant_id):
            raise ValueError('Environment variables of AZURE_CLIENT_SECRET, AZURE_STORAGE_ACCOUNT'
                             ' and AZURE_AUTHORITY or AZURE_TENANT_ID must be set')
        if not authority:
            authority = "{}/{}".format(
                self.cloud_environment.endpoints.active_directory.rstrip('/'), tenant_id)
        return AppRegistrationCredentials(account_name, client_id, client_secret, authority)


class ManagedIdentityEnvProber(CredsProber):
    '''
    Use the ambient identity for AZURE_STORAGE_ACCOUNT, optionally a user
    assigned one given by AZURE_MANAGED_IDENTITY_CLIENT_ID
    '''
    def probe(self, required=False):
        if not self.enabled:
            return None
        account_name = self._get('AZURE_STORAGE_ACCOUNT')
        if account_name:
            return ManagedIdentityCredentials(
                account_name, client_id=self._get('AZURE_MANAGED_IDENTITY_CLIENT_ID'))
        if required:
            raise ValueError('Environment variable AZURE_STORAGE_ACCOUNT must be set')
        return None


_PROBERS = [
    (AuthMode.CONNECTION_STRING, ConnectionStrEnvProber),
    (AuthMode.SAS_TOKEN, SasTokenEnvProber),
    (AuthMode.APP_REGISTRATION, ServicePrincipalEnvProber),
    (AuthMode.MANAGED_IDENTITY, ManagedIdentityEnvProber),
]


def get_cloud_from_environment(environ=None):
    environ = os.environ if environ is None else environ
    name = environ.get(CLOUD_ENV)
    return get_cloud_from_name(name) if name else AZURE_PUBLIC_CLOUD


def get_credentials_from_environment(mode=None, environ=None, cloud_environment=None):
    '''
    Probing logics:
    1. An explicit mode, or STORAGE_AUTH_MODE, picks a single prober whose
       variables must all be set.
    2. Otherwise, first match of:
       a. AZURE_STORAGE_CONNECTION_STRING, or account name and key
       b. account name and SAS token
       c. service principal (app registration)
       d. managed identity of the account

    :returns: tuple of AuthMode and credentials
    :raises: ValueError if nothing (or something incomplete) was found.
    '''
    environ = os.environ if environ is None else environ
    if cloud_environment is None:
        cloud_environment = get_cloud_from_environment(environ)
    mode = mode or environ.get(AUTH_MODE_ENV)
    if mode:
        mode = AuthMode(mode)
        prober_class = dict(_PROBERS)[mode]
        return mode, prober_class(environ, cloud_environment).probe(required=True)

    for mode, prober_class in _PROBERS:
        creds = prober_class(environ, cloud_environment).probe()
        if creds:
            _LOGGER.info("Credentials for auth mode '%s' were detected", mode.value)
            return mode, creds
    raise ValueError('No credential was detected from the environment')


def get_store_through_local_creds_probing(mode=None, environ=None, cloud_environment=None,
                                          aio=False, **kwargs):
    '''
    Probe the environment for credentials and resolve them into a blob store.
    Extra kwargs are forwarded to resolve().
    '''
    environ = os.environ if environ is None else environ
    if cloud_environment is None:
        cloud_environment = get_cloud_from_environment(environ)
    mode, creds = get_credentials_from_environment(mode, environ, cloud_environment)
    return resolve(mode, creds, cloud_environment=cloud_environment, aio=aio, **kwargs)
