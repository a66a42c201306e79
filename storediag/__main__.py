import sys

from storediag.cli import main

sys.exit(main())
