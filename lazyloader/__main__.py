import sys

from lazyloader.cli import main


sys.exit(main())
