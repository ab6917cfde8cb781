"""Allow ``python -m bookmarks_gateway``."""

from bookmarks_gateway.main import run

if __name__ == "__main__":  # pragma: no cover - script entry point
    run()
