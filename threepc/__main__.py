import sys

from threepc.doit import main

sys.exit(main())
