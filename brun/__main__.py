"""Allow ``python -m brun -- <cmd>``."""

from brun.run import main

raise SystemExit(main())
