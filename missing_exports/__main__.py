"""Allow ``python -m missing_exports``."""

from missing_exports.main import main

raise SystemExit(main())
