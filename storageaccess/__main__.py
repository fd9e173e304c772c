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

"""Walk through the blob operations of a container.

Credentials are read from the environment, see
storageaccess.azure_local_creds_prober.
"""

import argparse
import logging
import sys

from msrest.exceptions import ClientException

from .azure_copy_poller import DEFAULT_POLL_INTERVAL, rename_blob
from .azure_credentials import AuthMode
from .azure_local_creds_prober import get_store_through_local_creds_probing

_LOGGER = logging.getLogger(__name__)

SOURCE_BLOB = "my-text.txt"
DEST_BLOB = "your-text.txt"
SAMPLE_TEXT = "I really love blobs!"


def _build_parser():
    parser = argparse.ArgumentParser(prog="storageaccess", description=__doc__)
    parser.add_argument("--auth-mode", choices=[m.value for m in AuthMode],
                        help="Authentication mode, probed from the environment if omitted.")
    parser.add_argument("--container", default="my-files")
    parser.add_argument("--poll-interval", type=float, default=DEFAULT_POLL_INTERVAL,
                        help="Seconds between copy status checks.")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds to wait for the token request and for the copy to finish.")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def run(store, container, poll_interval=DEFAULT_POLL_INTERVAL, timeout=None, out=None):
    out = out or sys.stdout

    def say(line=""):
        out.write(line + "\n")

    say("LISTING FILES in {}...".format(container))
    for name in sorted(store.list_blobs(container)):
        say(name)
    say("...done\n")

    say("Uploading text file {}...".format(SOURCE_BLOB))
    store.upload_text(store.get_blob_ref(container, SOURCE_BLOB), SAMPLE_TEXT)
    say("...done\n")

    say("Reading text file {}...".format(SOURCE_BLOB))
    say(store.download_text(store.get_blob_ref(container, SOURCE_BLOB)))
    say("...done\n")

    say("Moving {} to {}...".format(SOURCE_BLOB, DEST_BLOB))
    rename_blob(store, container, SOURCE_BLOB, DEST_BLOB,
                poll_interval=poll_interval, timeout=timeout)
    say("...done\n")

    say("Reading text file {}...".format(DEST_BLOB))
    say(store.download_text(store.get_blob_ref(container, DEST_BLOB)))
    say("...done")


def main(argv=None):
    args = _build_parser().parse_args(argv)
    level = logging.WARNING - 10 * min(args.verbose, 2)
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        with get_store_through_local_creds_probing(
                mode=args.auth_mode, timeout=args.timeout) as store:
            run(store, args.container, args.poll_interval, args.timeout)
    except (ClientException, ValueError) as err:
        _LOGGER.error("%s", err)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
