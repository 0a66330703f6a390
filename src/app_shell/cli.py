import argparse
import logging
import sys
from datetime import timedelta
from uuid import UUID

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import (
    SQLiteIconRepo,
    SQLiteServiceRepo,
    SQLiteSortOrderStore,
    SQLiteUserLinkRepo,
)
from src.api.auth_utils import create_principal_token
from src.api.deps import Settings
from src.components.links import LinkServiceOperations, OrderingService, run_create_service
from src.domain.errors import LinkCatalogError

logger = logging.getLogger("cli")

# name, slug, base url, allow original icon
STARTER_SERVICES: list[tuple[str, str, str, bool]] = [
    ("X (Twitter)", "twitter", "https://x.com/", True),
    ("Instagram", "instagram", "https://www.instagram.com/", True),
    ("YouTube", "youtube", "https://www.youtube.com/", True),
    ("GitHub", "github", "https://github.com/", True),
    ("LinkedIn", "linkedin", "https://www.linkedin.com/in/", False),
    ("TikTok", "tiktok", "https://www.tiktok.com/", True),
    ("Website", "website", "", True),
]


def build_service_ops(db_path: str) -> LinkServiceOperations:
    return LinkServiceOperations(
        SQLiteServiceRepo(db_path),
        SQLiteIconRepo(db_path),
        SQLiteUserLinkRepo(db_path),
        OrderingService(SQLiteSortOrderStore(db_path)),
    )


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    applied = SQLiteMigrator(settings.db_path).run_migrations()
    print(f"Applied {len(applied)} migration(s) to {settings.db_path}.")


def handle_seed(settings: Settings, args: argparse.Namespace) -> None:
    """Insert the starter services that are not present yet."""
    SQLiteMigrator(settings.db_path).run_migrations()
    repo = SQLiteServiceRepo(settings.db_path)
    ops = build_service_ops(settings.db_path)

    created = 0
    for name, slug, base_url, allow_original_icon in STARTER_SERVICES:
        if repo.find_by_name_or_slug(name, slug):
            logger.info("Service %s already present, skipping", slug)
            continue
        run_create_service(
            {
                "name": name,
                "slug": slug,
                "baseUrl": base_url,
                "allowOriginalIcon": allow_original_icon,
            },
            ops,
        )
        created += 1

    print(f"Seeded {created} service(s).")


def handle_token(settings: Settings, args: argparse.Namespace) -> None:
    token = create_principal_token(
        args.principal_id,
        role=args.role,
        secret_key=settings.secret_key,
        expires_delta=timedelta(minutes=args.minutes),
    )
    print(token)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Altee link catalog CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending SQL migrations")

    # seed
    subparsers.add_parser("seed", help="Insert the starter service catalog")

    # token
    token_parser = subparsers.add_parser("token", help="Mint a development access token")
    token_parser.add_argument("principal_id", type=UUID, help="Principal id (UUID)")
    token_parser.add_argument("--role", choices=["admin", "user"], default="user")
    token_parser.add_argument("--minutes", type=int, default=60, help="Token lifetime")

    args = parser.parse_args(argv)
    settings = Settings()

    handlers = {
        "migrate": handle_migrate,
        "seed": handle_seed,
        "token": handle_token,
    }
    try:
        handlers[args.command](settings, args)
    except (LinkCatalogError, RuntimeError) as e:
        logger.error("%s failed: %s", args.command, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
