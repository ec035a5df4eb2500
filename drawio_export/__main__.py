import sys

from drawio_export.cli import main

sys.exit(main())
