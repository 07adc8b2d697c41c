import sys

from sensoroni.cli import main

if __name__ == "__main__":
    sys.exit(main())
