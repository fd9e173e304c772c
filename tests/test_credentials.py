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
import json
import unittest
from unittest import mock

import httpretty
import oauthlib
import requests
from requests_oauthlib import OAuth2Session

from azure.storage.blob import BlobServiceClient
from azure.storage.blob.aio import BlobServiceClient as AsyncBlobServiceClient

from storageaccess.azure_active_directory import (
    AsyncStorageTokenCredential,
    ServicePrincipalAuthentication,
    StorageTokenCredential,
    STORAGE_SCOPE)
from storageaccess.azure_async_blob_store import AsyncBlobStore
from storageaccess.azure_blob_store import BlobStore
from storageaccess.azure_cloud import AZURE_CHINA_CLOUD
from storageaccess.azure_credentials import (
    AppRegistrationCredentials,
    AuthMode,
    ConnectionStringCredentials,
    ManagedIdentityCredentials,
    SasTokenCredentials,
    parse_connection_string,
    resolve)
from storageaccess.azure_exceptions import (
    InvalidConnectionString,
    InvalidSasToken,
    TokenAcquisitionFailed)

ACCOUNT_KEY = "bXlrZXlteWtleW15a2V5"
SAS_TOKEN = ("sv=2019-12-12&ss=b&srt=sco&sp=rwdlacx&se=2030-01-01T00:00:00Z"
             "&st=2020-01-01T00:00:00Z&spr=https&sig=c2lnbmF0dXJl%3D")


class NoNetworkTestCase(unittest.TestCase):

    def setUp(self):
        patcher = mock.patch.object(requests.Session, 'send')
        self.send = patcher.start()
        self.addCleanup(patcher.stop)
        return super(NoNetworkTestCase, self).setUp()

    def tearDown(self):
        self.send.assert_not_called()
        return super(NoNetworkTestCase, self).tearDown()


class TestConnectionString(NoNetworkTestCase):

    def test_account_key(self):
        store = resolve(AuthMode.CONNECTION_STRING,
                        ConnectionStringCredentials("myaccount", ACCOUNT_KEY))

        self.assertIsInstance(store, BlobStore)
        self.assertIsInstance(store.service_client, BlobServiceClient)
        self.assertEqual(store.account_name, "myaccount")
        self.assertTrue(store.service_client.url.startswith("https://myaccount.blob.core.windows.net"))
        self.assertEqual(store.service_client.credential.account_name, "myaccount")

    def test_connection_string(self):
        conn_str = ("DefaultEndpointsProtocol=https;AccountName=myaccount;"
                    "AccountKey={};EndpointSuffix=core.windows.net".format(ACCOUNT_KEY))
        store = resolve("connection_string", ConnectionStringCredentials.from_connection_string(conn_str))

        self.assertEqual(store.account_name, "myaccount")

    def test_cloud_environment(self):
        store = resolve(AuthMode.CONNECTION_STRING,
                        ConnectionStringCredentials("myaccount", ACCOUNT_KEY),
                        cloud_environment=AZURE_CHINA_CLOUD)

        self.assertTrue(store.service_client.url.startswith("https://myaccount.blob.core.chinacloudapi.cn"))

    def test_development_storage(self):
        store = resolve(AuthMode.CONNECTION_STRING, ConnectionStringCredentials.development_storage())

        self.assertTrue(store.service_client.url.startswith("http://127.0.0.1:10000/devstoreaccount1"))

    def test_aio(self):
        store = resolve(AuthMode.CONNECTION_STRING,
                        ConnectionStringCredentials("myaccount", ACCOUNT_KEY), aio=True)

        self.assertIsInstance(store, AsyncBlobStore)
        self.assertIsInstance(store.service_client, AsyncBlobServiceClient)

    def test_parse(self):
        settings = parse_connection_string(
            "AccountName=myaccount; AccountKey=a2V5==;;EndpointSuffix=core.windows.net")
        self.assertEqual(settings, {
            'accountname': 'myaccount',
            'accountkey': 'a2V5==',
            'endpointsuffix': 'core.windows.net'})

    def test_malformed(self):
        malformed = [
            "",
            "   ",
            "DONTDOTHIS",
            "AccountName=myaccount",
            "AccountName=myaccount;AccountKey=DONTDOTHIS",
            "AccountName=myaccount;AccountKey={};garbage".format(ACCOUNT_KEY),
            "=value;AccountName=myaccount;AccountKey={}".format(ACCOUNT_KEY),
            "SharedAccessSignature={}".format(SAS_TOKEN),
        ]
        for conn_str in malformed:
            with self.assertRaises(InvalidConnectionString):
                resolve(AuthMode.CONNECTION_STRING,
                        ConnectionStringCredentials.from_connection_string(conn_str))

        with self.assertRaises(InvalidConnectionString):
            resolve(AuthMode.CONNECTION_STRING, ConnectionStringCredentials(account_name="myaccount"))
        with self.assertRaises(InvalidConnectionString):
            resolve(AuthMode.CONNECTION_STRING, ConnectionStringCredentials(account_key=ACCOUNT_KEY))

    def test_pair_and_connection_string_are_exclusive(self):
        conn_str = "AccountName=acctB;AccountKey={}".format(ACCOUNT_KEY)
        with self.assertRaises(ValueError):
            ConnectionStringCredentials("acctA", ACCOUNT_KEY, conn_str)
        with self.assertRaises(ValueError):
            ConnectionStringCredentials(account_name="acctA", connection_string=conn_str)

    def test_malformed_does_not_leak_key(self):
        with self.assertRaises(InvalidConnectionString) as cm:
            resolve(AuthMode.CONNECTION_STRING, ConnectionStringCredentials.from_connection_string(
                "AccountName=myaccount;s3cr3tvalue"))
        self.assertNotIn("s3cr3tvalue", str(cm.exception))

    def test_repr_masks_secrets(self):
        creds = ConnectionStringCredentials("myaccount", ACCOUNT_KEY)
        self.assertNotIn(ACCOUNT_KEY, repr(creds))
        self.assertIn("myaccount", repr(creds))


class TestSasToken(NoNetworkTestCase):

    def test_sas_token(self):
        for token in (SAS_TOKEN, "?" + SAS_TOKEN):
            store = resolve(AuthMode.SAS_TOKEN, SasTokenCredentials("myaccount", token))

            self.assertIsInstance(store, BlobStore)
            self.assertEqual(store.account_name, "myaccount")
            url = store.service_client.url
            self.assertTrue(url.startswith("https://myaccount.blob.core.windows.net"))
            self.assertIn("sig=", url)

    def test_trailing_ampersand(self):
        token = "sv=2019-12-12&sp=rw&sig=abc&"
        store = resolve(AuthMode.SAS_TOKEN, SasTokenCredentials("myaccount", "?" + token))
        self.assertIn("sig=abc", store.service_client.url)

    def test_read_only_warning(self):
        token = "sv=2019-12-12&sp=rl&sig=c2lnbmF0dXJl"
        with self.assertLogs('storageaccess.azure_credentials', level="WARNING"):
            resolve(AuthMode.SAS_TOKEN, SasTokenCredentials("myaccount", token))

    def test_malformed(self):
        for token in ("", "?", "SASKEY", "sv=2019-12-12", "sp=rw&sig=abc", "sv=2019-12-12&sig="):
            with self.assertRaises(InvalidSasToken):
                resolve(AuthMode.SAS_TOKEN, SasTokenCredentials("myaccount", token))

        with self.assertRaises(InvalidSasToken):
            resolve(AuthMode.SAS_TOKEN, SasTokenCredentials(None, SAS_TOKEN))

    def test_repr_masks_secrets(self):
        self.assertNotIn("sig=", repr(SasTokenCredentials("myaccount", SAS_TOKEN)))


class TestTokenModes(unittest.TestCase):

    def _session(self):
        session = mock.create_autospec(OAuth2Session)
        session.__enter__.return_value = session
        session.__exit__.return_value = False
        session.fetch_token.return_value = {
            'token_type': 'Bearer',
            'access_token': 'abc',
            'expires_in': 3599,
            'expires_at': 1700000000}
        return session

    def test_app_registration(self):
        session = self._session()
        with mock.patch.object(ServicePrincipalAuthentication, '_setup_session', return_value=session):
            store = resolve(AuthMode.APP_REGISTRATION, AppRegistrationCredentials(
                "myaccount", "MIP_CLIENTID", "MIP_CLIENTSECRET",
                "https://login.microsoftonline.com/foo.com"), timeout=10)

        session.fetch_token.assert_called_once_with(
            "https://login.microsoftonline.com/foo.com/oauth2/v2.0/token",
            client_secret="MIP_CLIENTSECRET", include_client_id=True, scope=[STORAGE_SCOPE],
            verify=True, timeout=10, proxies=None)
        self.assertIsInstance(store, BlobStore)
        self.assertEqual(store.account_name, "myaccount")
        credential = store.service_client.credential
        self.assertIsInstance(credential, StorageTokenCredential)
        self.assertEqual(credential.get_token(STORAGE_SCOPE).token, 'abc')

    def test_app_registration_aio(self):
        session = self._session()
        with mock.patch.object(ServicePrincipalAuthentication, '_setup_session', return_value=session):
            store = resolve(AuthMode.APP_REGISTRATION, AppRegistrationCredentials(
                "myaccount", "MIP_CLIENTID", "MIP_CLIENTSECRET"), aio=True)

        self.assertIsInstance(store, AsyncBlobStore)
        self.assertIsInstance(store.service_client.credential, AsyncStorageTokenCredential)

    def test_app_registration_failure(self):
        session = self._session()
        session.fetch_token.side_effect = oauthlib.oauth2.rfc6749.errors.InvalidClientError
        with mock.patch.object(ServicePrincipalAuthentication, '_setup_session', return_value=session):
            with self.assertRaises(TokenAcquisitionFailed):
                resolve(AuthMode.APP_REGISTRATION, AppRegistrationCredentials(
                    "myaccount", "MIP_CLIENTID", "expired-secret"))
        self.assertEqual(session.fetch_token.call_count, 1)

    def test_app_registration_requires_account(self):
        session = self._session()
        with mock.patch.object(ServicePrincipalAuthentication, '_setup_session', return_value=session):
            for account in (None, ""):
                with self.assertRaises(ValueError):
                    resolve(AuthMode.APP_REGISTRATION, AppRegistrationCredentials(
                        account, "MIP_CLIENTID", "MIP_CLIENTSECRET"))
        session.fetch_token.assert_not_called()

    @httpretty.activate(allow_net_connect=False)
    def test_managed_identity_requires_account(self):
        httpretty.register_uri(httpretty.GET,
                               'http://169.254.169.254/metadata/identity/oauth2/token',
                               body=json.dumps({'access_token': 'msi-token', 'expires_on': '1700000000'}),
                               content_type="application/json")

        with mock.patch.dict('os.environ', {}, clear=True):
            with self.assertRaises(ValueError):
                resolve(AuthMode.MANAGED_IDENTITY, ManagedIdentityCredentials(None))

        self.assertEqual(httpretty.latest_requests(), [])

    def test_repr_masks_secrets(self):
        creds = AppRegistrationCredentials("myaccount", "MIP_CLIENTID", "MIP_CLIENTSECRET")
        self.assertNotIn("MIP_CLIENTSECRET", repr(creds))
        self.assertIn("MIP_CLIENTID", repr(creds))

    @httpretty.activate
    def test_managed_identity(self):
        httpretty.register_uri(httpretty.GET,
                               'http://169.254.169.254/metadata/identity/oauth2/token',
                               body=json.dumps({
                                   'token_type': 'Bearer',
                                   'access_token': 'msi-token',
                                   'expires_on': '1700000000'}),
                               content_type="application/json")

        with mock.patch.dict('os.environ', {}, clear=True):
            store = resolve(AuthMode.MANAGED_IDENTITY, ManagedIdentityCredentials("myaccount"))

        self.assertEqual(httpretty.last_request().querystring['resource'], ['https://storage.azure.com/'])
        self.assertEqual(store.account_name, "myaccount")
        self.assertEqual(store.service_client.credential.get_token(STORAGE_SCOPE).token, 'msi-token')

    @httpretty.activate
    def test_managed_identity_failure(self):
        httpretty.register_uri(httpretty.GET,
                               'http://169.254.169.254/metadata/identity/oauth2/token',
                               status=400,
                               body='{"error": "invalid_request"}',
                               content_type="application/json")

        with mock.patch.dict('os.environ', {}, clear=True):
            with self.assertRaises(TokenAcquisitionFailed):
                resolve(AuthMode.MANAGED_IDENTITY, ManagedIdentityCredentials("myaccount"))


class TestResolve(NoNetworkTestCase):

    def test_mode_mismatch(self):
        with self.assertRaises(ValueError):
            resolve(AuthMode.SAS_TOKEN, ConnectionStringCredentials("myaccount", ACCOUNT_KEY))
        with self.assertRaises(ValueError):
            resolve(AuthMode.MANAGED_IDENTITY, {'account_name': 'myaccount'})
        with self.assertRaises(ValueError):
            resolve("kerberos", ManagedIdentityCredentials("myaccount"))

    def test_credentials_carry_their_mode(self):
        self.assertIs(ConnectionStringCredentials().mode, AuthMode.CONNECTION_STRING)
        self.assertIs(SasTokenCredentials("a", "b").mode, AuthMode.SAS_TOKEN)
        self.assertIs(AppRegistrationCredentials("a", "b", "c").mode, AuthMode.APP_REGISTRATION)
        self.assertIs(ManagedIdentityCredentials("a").mode, AuthMode.MANAGED_IDENTITY)


if __name__ == '__main__':
    unittest.main()
