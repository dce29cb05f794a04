import sys

from helpcheck.cli import main

sys.exit(main())
