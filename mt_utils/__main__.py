"""Allow ``python -m mt_utils``."""

from mt_utils.cli import main

main()
