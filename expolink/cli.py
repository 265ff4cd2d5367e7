"""
Operator commands.

    expolink seed-roles
    expolink create-admin --email admin@example.com --password secret --name Admin
    expolink send-reminders
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from expolink.core.config import settings

logger = logging.getLogger(__name__)


async def _seed_roles() -> None:
    from expolink.core.database import AsyncSessionLocal
    from expolink.services.user_service import UserService

    async with AsyncSessionLocal() as session:
        created = await UserService(session).seed_roles()
        await session.commit()
    if created:
        print("Created roles: " + ", ".join(role.slug for role in created))
    else:
        print("Roles already present.")


async def _create_admin(email: str, password: str, name: str) -> None:
    from expolink.core.database import AsyncSessionLocal
    from expolink.services.user_service import UserService

    async with AsyncSessionLocal() as session:
        service = UserService(session)
        await service.seed_roles()
        user = await service.create_admin(email, password, name)
        await session.commit()
    print(f"Admin ready: {user.email} ({user.id})")


def cmd_seed_roles(args: argparse.Namespace) -> None:
    asyncio.run(_seed_roles())


def cmd_create_admin(args: argparse.Namespace) -> None:
    asyncio.run(_create_admin(args.email, args.password, args.name))


def cmd_send_reminders(args: argparse.Namespace) -> None:
    """Run one reminder pass in-process, without a Celery worker."""
    from expolink.workers.reminder_tasks import sweep

    result = asyncio.run(sweep())
    print(
        f"Reminders sent: {result['hour']} within the hour, "
        f"{result['day']} for tomorrow ({result['skipped']} already sent)."
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expolink", description="ExpoLink operator commands")
    sub = parser.add_subparsers(dest="command", required=True)

    p_seed = sub.add_parser("seed-roles", help="Create the admin, exhibitor and visitor roles")
    p_seed.set_defaults(func=cmd_seed_roles)

    p_admin = sub.add_parser("create-admin", help="Create an admin account for the back-office")
    p_admin.add_argument("--email", required=True)
    p_admin.add_argument("--password", required=True)
    p_admin.add_argument("--name", default="Admin")
    p_admin.set_defaults(func=cmd_create_admin)

    p_remind = sub.add_parser("send-reminders", help="Send due appointment reminders now")
    p_remind.set_defaults(func=cmd_send_reminders)

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
