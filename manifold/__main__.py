"""Allow ``python -m manifold``."""

from .cli import main

if __name__ == "__main__":
    main()
