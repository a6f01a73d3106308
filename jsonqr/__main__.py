import sys

from jsonqr.cli import main

sys.exit(main())
