import sys

from commodity_analytics.main import main

sys.exit(main())
