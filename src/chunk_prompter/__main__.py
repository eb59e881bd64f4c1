"""Allow ``python -m chunk_prompter``."""

from .cli import main

if __name__ == "__main__":
    main()
