"""Entry point for `python -m trackimport`."""

import sys


def main():
    from trackimport.app import run_app
    sys.exit(run_app())


if __name__ == "__main__":
    main()
