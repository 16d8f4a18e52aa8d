import sys

from cruisereplay.cli import main

sys.exit(main())
