import sys

from .main_headless import main

sys.exit(main())
