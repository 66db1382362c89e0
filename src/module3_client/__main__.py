# file: src/module3_client/__main__.py

import sys

from .cli import main

sys.exit(main())
