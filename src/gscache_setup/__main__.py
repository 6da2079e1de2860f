import sys

from gscache_setup.runner import main

sys.exit(main())
