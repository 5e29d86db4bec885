import sys

from snowfall.cli import main

sys.exit(main())
