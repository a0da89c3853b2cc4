"""Allow running temple as a module: ``python -m temple``."""

from temple.cli import main

main()
