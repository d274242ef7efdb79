import sys

from slot_prover.cli import main

sys.exit(main())
