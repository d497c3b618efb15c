"""Convenience launcher: `python run.py crawl ...` or `python run.py serve`."""
from sitemonitor.cli import main


if __name__ == "__main__":
    main()
