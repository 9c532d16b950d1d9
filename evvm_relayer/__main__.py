"""
Entry point for running the relayer as a module.

Usage:
    python -m evvm_relayer
"""

from evvm_relayer.cli import main

if __name__ == "__main__":
    main()
