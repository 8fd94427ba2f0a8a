import sys

from contrib_tiers.cli import main

sys.exit(main())
