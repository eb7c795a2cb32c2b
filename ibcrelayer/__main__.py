import sys

from ibcrelayer.cli.main import main

sys.exit(main())
