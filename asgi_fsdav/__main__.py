#!/usr/bin/env python


"""
The main entry point.
Invoke as `asgi-fsdav' or `python -m asgi_fsdav'.
"""


def main():
    import sys

    from .cli import main as cli_main

    try:
        sys.exit(cli_main())

    except KeyboardInterrupt:
        sys.exit(1)


if __name__ == "__main__":
    main()
