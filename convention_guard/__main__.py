import sys

from convention_guard.cli import main

if __name__ == "__main__":
    sys.exit(main())
