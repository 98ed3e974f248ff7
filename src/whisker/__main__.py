import sys

from whisker.cli import main

sys.exit(main())
