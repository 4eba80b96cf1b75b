"""CLI entry point.

Usage:
  python -m examine run --input <csv> --column <name>   # examine one variable
  python -m examine config --output <yaml>             # write default config
"""
from dotenv import load_dotenv

load_dotenv()

from examine.cli import main


if __name__ == "__main__":
    main()
