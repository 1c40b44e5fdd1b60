# seed_users.py
import asyncio

from todo_api.core.credentials import CredentialService
from todo_api.shared import Config, load_config, setup_logging
from todo_api.shared.db import DEMO_PASSWORD, Database, seed_users


async def seed(config: Config):
    database = Database(config.database)
    try:
        await database.create_all()
        added = await seed_users(database, CredentialService(config.password))
    finally:
        await database.dispose()

    print(f"[✔] Added {added} demo user(s), password '{DEMO_PASSWORD}'")


if __name__ == "__main__":
    import argparse

    def parse_args():
        parser = argparse.ArgumentParser(description="Insert the demo users")
        parser.add_argument(
            "--config", type=str, default="config.toml", help="Config file to load"
        )
        parser.add_argument("--db", type=str, help="Database URL override")
        return parser.parse_args()

    args = parse_args()
    config = load_config(args.config)
    if args.db:
        config = config.model_copy(
            update={"database": config.database.model_copy(update={"url": args.db})}
        )

    setup_logging(config.logging.level)
    asyncio.run(seed(config))
