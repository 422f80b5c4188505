"""Run the shell: python -m tikvcli --url tikv://127.0.0.1:2379"""

import sys

from tikvcli.cli import main

if __name__ == "__main__":
    sys.exit(main())
