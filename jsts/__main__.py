import sys

from .jstsc import main

sys.exit(main())
