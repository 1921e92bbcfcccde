# create_superadmin.py
"""
Создаёт первого суперадмина из командной строки.

    python create_superadmin.py <username> <email> <password>
"""

import asyncio
import sys

from src.common.constants import UserRole
from src.core.auth.passwords import hash_password
from src.core.users.repository import UserRepository
from src.infra.database import close_db, init_db


async def main(username: str, email: str, password: str) -> int:
    db = await init_db(apply_schema=False)
    try:
        users = UserRepository(db)
        if await users.count_by_role(UserRole.SUPERADMIN) > 0:
            print("A super admin already exists.")
            return 1
        if await users.exists(email, username):
            print("User with this email or username already exists.")
            return 1

        user = await users.create_first_superadmin(username, email, hash_password(password))
        if user is None:
            print("A super admin already exists.")
            return 1
        print(f"Super admin {user.email} created ({user.id})")
        return 0
    finally:
        await close_db()


if __name__ == "__main__":
    if len(sys.argv) != 4:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(*sys.argv[1:4])))
