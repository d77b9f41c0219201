#!/usr/bin/env python3
"""
CLI tool to manage API users.

Usage:
    python -m exchange_api.cli.manage_users create --username admin --role administrator
    python -m exchange_api.cli.manage_users create --username uni --role organization --organization-id 7 --interactive
    python -m exchange_api.cli.manage_users list
    python -m exchange_api.cli.manage_users deactivate --username olduser
    python -m exchange_api.cli.manage_users activate --username user
    python -m exchange_api.cli.manage_users token --username admin

Roles: administrator, organization, student
organization_id 0 means the user belongs to no organization.
"""
import asyncio
import argparse
import getpass
import secrets
import sys

from exchange_api.api.auth import create_access_token
from exchange_api.db.connection import build_engine, build_session_maker, create_tables
from exchange_api.domain.enums import Role
from exchange_api.services.user_service import UserService
from exchange_api.config import settings

ROLE_NAMES = {role.name.lower(): role for role in Role}


def _role_name(role_id: int) -> str:
    try:
        return Role(role_id).name.lower()
    except ValueError:
        return str(role_id)


async def _session_maker():
    """Create engine + session factory, creating tables if they don't exist"""
    engine = build_engine(settings.database_url)
    await create_tables(engine)
    return engine, build_session_maker(engine)


async def create_user(
    username: str,
    role: Role,
    organization_id: int,
    password: str = None,
    interactive: bool = False
) -> int:
    """Create a new user"""

    if interactive:
        print(f"Creating user '{username}'")
        password = getpass.getpass("Enter password: ")
        password_confirm = getpass.getpass("Confirm password: ")

        if password != password_confirm:
            print("[ERROR] Passwords do not match")
            return 1

        if len(password) < 8:
            print("[ERROR] Password must be at least 8 characters")
            return 1

    elif not password:
        password = secrets.token_urlsafe(16)
        print("ℹ️  No password provided, generating random password")

    engine, session_maker = await _session_maker()
    try:
        async with session_maker() as session:
            try:
                user = await UserService.create_user(
                    db=session,
                    username=username,
                    password=password,
                    role_id=role,
                    organization_id=organization_id
                )
            except ValueError as e:
                print(f"[ERROR] {e}")
                return 1

        print("\n" + "=" * 70)
        print("[SUCCESS] User created successfully!")
        print("=" * 70)
        print(f"Username: {user.username}")
        if not interactive:
            print(f"Password: {password}")
            print()
            print("⚠️  SAVE THIS PASSWORD - It will not be shown again!")
        print()
        print("User Details:")
        print(f"  ID: {user.id}")
        print(f"  Role: {_role_name(user.role_id)}")
        print(f"  Organization: {user.organization_id or '-'}")
        print(f"  Active: {user.is_active}")
        print("=" * 70)
        return 0
    finally:
        await engine.dispose()


async def list_users() -> int:
    """List all users"""
    engine, session_maker = await _session_maker()
    try:
        async with session_maker() as session:
            users = await UserService.list_users(session)

        if not users:
            print("No users found")
            return 0

        print(f"{'ID':<6}{'Username':<24}{'Role':<16}{'Org':<8}{'Active':<8}")
        print("-" * 62)
        for user in users:
            print(f"{user.id:<6}{user.username:<24}{_role_name(user.role_id):<16}{user.organization_id:<8}{str(user.is_active):<8}")
        return 0
    finally:
        await engine.dispose()


async def set_active(username: str, is_active: bool) -> int:
    """Activate or deactivate a user"""
    engine, session_maker = await _session_maker()
    try:
        async with session_maker() as session:
            updated = await UserService.set_active(session, username, is_active)

        if not updated:
            print(f"[ERROR] User '{username}' not found")
            return 1

        print(f"[SUCCESS] User '{username}' {'activated' if is_active else 'deactivated'}")
        return 0
    finally:
        await engine.dispose()


async def issue_token(username: str) -> int:
    """Print a bearer token for an existing, active user"""
    engine, session_maker = await _session_maker()
    try:
        async with session_maker() as session:
            user = await UserService.get_user_by_username(session, username)

        if not user or not user.is_active:
            print(f"[ERROR] No active user '{username}'")
            return 1

        token, expires_in = create_access_token(user.id, user.role_id, user.organization_id)
        print(token)
        print(f"(expires in {expires_in // 3600}h)", file=sys.stderr)
        return 0
    finally:
        await engine.dispose()


def _role(value: str) -> Role:
    try:
        return ROLE_NAMES[value.lower()]
    except KeyError:
        raise argparse.ArgumentTypeError(f"Unknown role '{value}'. Choose from: {', '.join(ROLE_NAMES)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage Exchange Programs API users")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create", help="Create a new user")
    create_parser.add_argument("--username", required=True)
    create_parser.add_argument("--password", help="Password (random if omitted)")
    create_parser.add_argument("--interactive", action="store_true", help="Prompt for password")
    create_parser.add_argument("--role", type=_role, default=Role.STUDENT, help="administrator, organization or student")
    create_parser.add_argument("--organization-id", type=int, default=0, help="Owning organization, 0 for none")

    subparsers.add_parser("list", help="List all users")

    for name, help_text in (("deactivate", "Deactivate a user"), ("activate", "Activate a user"), ("token", "Print a bearer token")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--username", required=True)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "create":
        return asyncio.run(create_user(
            username=args.username,
            role=args.role,
            organization_id=args.organization_id,
            password=args.password,
            interactive=args.interactive
        ))
    if args.command == "list":
        return asyncio.run(list_users())
    if args.command == "deactivate":
        return asyncio.run(set_active(args.username, False))
    if args.command == "activate":
        return asyncio.run(set_active(args.username, True))
    return asyncio.run(issue_token(args.username))


if __name__ == "__main__":
    sys.exit(main())
