"""
confsync: keep local config and secret files in sync with remote stores.

A catalog next to your files remembers where each one lives remotely
(S3, SSM Parameter Store, the shipment service) so push, pull and purge
can be repeated from any machine.
"""

import os

__version__ = "0.1.0"

CONFSYNC_HOME = os.environ.get("CONFSYNC_HOME", "~/.confsync")
