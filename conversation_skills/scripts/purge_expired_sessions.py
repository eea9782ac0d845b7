"""
Expired Session Sweeper.

Expiry is normally lazy (checked when a user speaks again). Run this script
periodically (cron, k8s CronJob) on resource-bound deployments to evict
abandoned sessions from the SQL session store.

Usage:
    python -m conversation_skills.scripts.purge_expired_sessions
"""

from conversation_skills.config import settings
from conversation_skills.repositories.session import SqlSessionStore


def purge_sessions() -> int:
    print("Initializing Database Connection...")

    store = SqlSessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS)

    print(f"Evicting sessions idle for more than {store.ttl_seconds} seconds.")
    purged = store.purge_expired()
    print(f"Purge complete: {purged} sessions evicted.")
    return purged


if __name__ == "__main__":
    purge_sessions()
