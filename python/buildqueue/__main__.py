"""Allow `python -m buildqueue charts`."""

import sys

from buildqueue.cli import main

sys.exit(main())
