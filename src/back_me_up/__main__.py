"""back-me-up: back_me_up/__main__.py.

Incremental, hard-link-chained rsync backups of this host.
"""

import sys

from .cli.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
