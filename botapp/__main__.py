import sys

from botapp.app import main

sys.exit(main())
