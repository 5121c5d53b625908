"""
User Service
Read-only lookups against the farmer profiles row store (Supabase)
"""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "display_name, phone, address, state, district, farm_name, "
    "farm_size, crop_types, preferred_language"
)


async def get_profile(supabase_client, user_id: str) -> Optional[Dict]:
    """Get a farmer profile by user id, None if missing or the store is unavailable"""
    try:
        if not supabase_client or not user_id:
            return None

        result = supabase_client.table('profiles')\
            .select(PROFILE_FIELDS)\
            .eq('user_id', user_id)\
            .limit(1)\
            .execute()

        if result.data and len(result.data) > 0:
            return result.data[0]
        return None

    except Exception as e:
        logger.error(f"Error getting profile {user_id}: {e}")
        return None


async def get_preferred_language(supabase_client, user_id: str) -> Optional[str]:
    """Return the profile's preferred_language, if any"""
    profile = await get_profile(supabase_client, user_id)
    if not profile:
        return None
    language = profile.get("preferred_language")
    if language:
        logger.info(f"✓ Using preferred language '{language}' for {user_id[:8]}...")
    return language or None
