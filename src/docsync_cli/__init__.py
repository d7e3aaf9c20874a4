def main() -> None:
    # Import lazily so settings are only read when a command actually runs
    from .run import main as _main

    _main()

__all__ = ["main"]
