"""CLI entry point - wrapper around the cli package

Run ``python rotate.py switch`` from a checkout without installing.
"""

from cli.main import main

if __name__ == "__main__":
    main()
