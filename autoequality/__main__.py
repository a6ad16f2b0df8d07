"""Allow ``python -m autoequality``."""

from autoequality.main import main

if __name__ == "__main__":
    raise SystemExit(main())
