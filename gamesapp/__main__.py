"""Allow running the app as a module: python -m gamesapp."""

from gamesapp.runner import main

if __name__ == "__main__":
    main()
