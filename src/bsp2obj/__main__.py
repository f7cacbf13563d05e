import sys

from bsp2obj.cli import main


if __name__ == "__main__":
    sys.exit(main())
