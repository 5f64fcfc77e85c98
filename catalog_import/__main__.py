import sys

from catalog_import.main import main

sys.exit(main())
