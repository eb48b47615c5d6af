import sys

from itinerary_optimizer.cli import main

sys.exit(main())
