"""
Seed Allowlist Script
Copies the env-configured allowlist emails into the auth_allowlist table.
Emails passed on the command line are added with role 'admin'.

    python -m brain_db.scripts.seed_allowlist [admin@example.com ...]
"""

import sys
from typing import Iterable, List
from brain_db.config import settings
from brain_db.database.supabase_client import get_supabase_admin
from brain_db.modules.auth.allowlist import normalize_email, parse_env_list
from brain_db.modules.auth.service import ALLOWLIST_TABLE
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_entries(supabase: Client, emails: Iterable[str], role: str) -> List[str]:
    """Insert missing emails, reactivate and re-role existing ones"""
    seeded = []
    for raw in emails:
        email = normalize_email(raw)
        if not email:
            continue
        try:
            existing = supabase.table(ALLOWLIST_TABLE)\
                .select("id")\
                .eq("email", email)\
                .limit(1)\
                .execute()

            if existing.data:
                supabase.table(ALLOWLIST_TABLE)\
                    .update({"role": role, "is_active": True})\
                    .eq("id", existing.data[0]["id"])\
                    .execute()
                logger.debug(f"Updated allowlist entry: {email}")
            else:
                supabase.table(ALLOWLIST_TABLE).insert({
                    "email": email,
                    "role": role,
                    "is_active": True,
                }).execute()
                logger.debug(f"Created allowlist entry: {email}")
            seeded.append(email)
        except Exception as e:
            logger.error(f"Error seeding allowlist entry {email}: {e}")
    return seeded


def main(argv: List[str]) -> None:
    try:
        supabase = get_supabase_admin()
        users = seed_entries(supabase, parse_env_list(settings.allowlist_emails), "user")
        admins = seed_entries(supabase, argv, "admin")
        logger.info(f"Allowlist seeded: {len(users)} users, {len(admins)} admins")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv[1:])
