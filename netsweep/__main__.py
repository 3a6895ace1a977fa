"""
netsweep - Main Entry Point

It can be run as: python -m netsweep
"""

from .cli import main

if __name__ == "__main__":
    main()
