"""Admin commands: create tables, seed an admin account, run the server."""
import argparse
import logging
import sys

from cms.core.config import Settings, get_settings
from cms.core.exceptions import CMSError
from cms.crud import users as crud_users
from cms.db.database import Store
from cms.models.user import UserRole
from cms.utils.validation import validate_email, validate_password, validate_username

logger = logging.getLogger("cms.cli")


def init_db(store: Store) -> None:
    """Initialize the database by creating all tables defined in the models"""
    print("Creating tables on the database...")
    store.create_tables()
    print("Tables created successfully!")


def create_admin(store: Store, username: str, email: str, password: str) -> bool:
    """Insert an admin user; returns False when the username is already taken."""
    store.create_tables()
    with store.session() as session:
        if crud_users.get_by_username(session, username):
            print(f"User '{username}' already exists")
            return False
        admin = crud_users.create_user(session, username, email, password, role=UserRole.ADMIN)
        print(f"Admin created successfully: {admin.username} / {admin.email}")
        return True


def serve(settings: Settings, host: str | None, port: int | None, reload: bool) -> None:
    import uvicorn

    uvicorn.run(
        "cms.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cms", description="Headless CMS API administration")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="create all tables")

    admin = sub.add_parser("create-admin", help="create an admin user")
    admin.add_argument("--username", required=True)
    admin.add_argument("--email", required=True)
    admin.add_argument("--password", required=True)

    run = sub.add_parser("serve", help="run the API with uvicorn")
    run.add_argument("--host")
    run.add_argument("--port", type=int)
    run.add_argument("--reload", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    if args.command == "serve":
        serve(settings, args.host, args.port, args.reload)
        return 0

    store = Store(settings.sqlalchemy_url)
    try:
        if args.command == "init-db":
            init_db(store)
            return 0

        errors = []
        if not validate_username(args.username):
            errors.append("username must be 3-50 characters")
        if not validate_email(args.email):
            errors.append("email is not valid")
        if not validate_password(args.password):
            errors.append("password must be at least 6 characters")
        if errors:
            for error in errors:
                print(f"error: {error}", file=sys.stderr)
            return 2
        try:
            created = create_admin(store, args.username, args.email, args.password)
        except CMSError as exc:
            logger.error("Could not create admin: %s", exc.message)
            return 1
        return 0 if created else 1
    finally:
        store.dispose()


if __name__ == "__main__":
    sys.exit(main())
