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

class CloudEndpoints(object):
    """Endpoints used to authenticate against a cloud.

    :param str active_directory: AAD login host.
    :param str storage_resource_id: Resource (audience) of the storage data plane.
    """

    def __init__(self, active_directory, storage_resource_id):
        self.active_directory = active_directory
        self.storage_resource_id = storage_resource_id


class CloudSuffixes(object):

    def __init__(self, storage_endpoint):
        self.storage_endpoint = storage_endpoint


class Cloud(object):
    """Represents an Azure Cloud instance."""

    def __init__(self, name, endpoints, suffixes):
        self.name = name
        self.endpoints = endpoints
        self.suffixes = suffixes

    def blob_account_url(self, account_name):
        """Build the blob service URL of an account in this cloud.

        :param str account_name: Storage account name.
        :rtype: str
        """
        return "https://{}.blob.{}".format(account_name, self.suffixes.storage_endpoint)

    def __repr__(self):
        return "Cloud({!r})".format(self.name)


AZURE_PUBLIC_CLOUD = Cloud(
    'AzureCloud',
    endpoints=CloudEndpoints(
        active_directory='https://login.microsoftonline.com',
        storage_resource_id='https://storage.azure.com/'),
    suffixes=CloudSuffixes(storage_endpoint='core.windows.net'))

AZURE_CHINA_CLOUD = Cloud(
    'AzureChinaCloud',
    endpoints=CloudEndpoints(
        active_directory='https://login.chinacloudapi.cn',
        storage_resource_id='https://storage.azure.com/'),
    suffixes=CloudSuffixes(storage_endpoint='core.chinacloudapi.cn'))

AZURE_US_GOV_CLOUD = Cloud(
    'AzureUSGovernment',
    endpoints=CloudEndpoints(
        active_directory='https://login.microsoftonline.us',
        storage_resource_id='https://storage.azure.com/'),
    suffixes=CloudSuffixes(storage_endpoint='core.usgovcloudapi.net'))

KNOWN_CLOUDS = [AZURE_PUBLIC_CLOUD, AZURE_CHINA_CLOUD, AZURE_US_GOV_CLOUD]


def get_cloud_from_name(name):
    """Look up a known cloud by name (case insensitive).

    :raises: ValueError if the name is unknown.
    """
    for cloud in KNOWN_CLOUDS:
        if cloud.name.lower() == name.lower():
            return cloud
    raise ValueError("Unknown cloud '{}', expected one of {}".format(
        name, ", ".join(c.name for c in KNOWN_CLOUDS)))
