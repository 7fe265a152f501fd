"""`python -m magistr.main` runs the same CLI as the `magistr` script."""

from magistr.cli import main

if __name__ == "__main__":
    main()
