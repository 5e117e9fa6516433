import sys

from overhead.app import main

sys.exit(main())
