"""Run the signaling relay CLI: ``python -m relay serve``."""

from relay.cli import typer_app


def main() -> None:
    typer_app()


if __name__ == "__main__":
    main()
