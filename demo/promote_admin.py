#!/usr/bin/env python3
"""Grant the ADMIN role to an existing user. Run on the server.

    python demo/promote_admin.py <username>
"""
import asyncio
import sys

from bankcards.database import AsyncSessionLocal, engine
from bankcards.models.role import RoleName
from bankcards.repositories import find_user_by_username
from bankcards.services.user_service import get_role, seed_roles


async def promote(username: str):
    async with AsyncSessionLocal() as s:
        await seed_roles(s)
        user = await find_user_by_username(s, username)
        if user is None:
            print(f"No user named {username!r}")
            return 1
        if RoleName.ADMIN not in user.role_names:
            user.roles.append(await get_role(s, RoleName.ADMIN))
        await s.commit()
        print(f"{username} roles: {sorted(r.value for r in user.role_names)}")
    await engine.dispose()
    return 0

if __name__ == "__main__":
    if len(sys.argv) != 2:
        sys.exit(__doc__)
    sys.exit(asyncio.run(promote(sys.argv[1])))
