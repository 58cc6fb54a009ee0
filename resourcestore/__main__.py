"""
Entry point for ``python -m resourcestore``.
"""
from resourcestore.cli import main

if __name__ == "__main__":
    main()
