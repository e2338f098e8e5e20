"""
Script to create a dashboard user.
Usage: python -m admin_backend.create_admin
"""
import asyncio

from admin_backend.auth import get_password_hash
from config import ROLE_ADMIN, ROLE_CLOSER
from database import create_admin_user, init_database
from utils.validation import validate_email


async def main():
    """Create admin user."""
    await init_database()

    print("=" * 50)
    print("Create Dashboard User")
    print("=" * 50)

    email = input("Enter email: ").strip()
    if not validate_email(email):
        print("Error: A valid email is required")
        return

    password = input("Enter password: ").strip()
    if not password or len(password) < 6:
        print("Error: Password must be at least 6 characters")
        return

    full_name = input("Enter full name (optional): ").strip() or None

    role = input(f"Role [{ROLE_ADMIN}/{ROLE_CLOSER}] (default {ROLE_ADMIN}): ").strip() or ROLE_ADMIN
    if role not in (ROLE_ADMIN, ROLE_CLOSER):
        print(f"Error: Role must be '{ROLE_ADMIN}' or '{ROLE_CLOSER}'")
        return

    success = await create_admin_user(email, get_password_hash(password), full_name, role)

    if success:
        print(f"\nUser '{email}' created successfully!")
        print("You can now login at POST /admin/login")
    else:
        print(f"\nUser '{email}' already exists.")


if __name__ == "__main__":
    asyncio.run(main())
