import sys

from twoslash_cli.cli import main

sys.exit(main())
