"""synccron - run nextcloudcmd from cron with locking and retry backoff."""

import logging

__version__ = "1.3.0"

# Silent unless the CLI installs a handler (cron mails any output)
logging.getLogger(__name__).addHandler(logging.NullHandler())
