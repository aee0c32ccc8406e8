import sys

from bjsim.cli import main

sys.exit(main())
