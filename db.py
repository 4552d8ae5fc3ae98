"""
Profile Store
=============
Read-only access layer over the processed profile files
(laptops.json, cpus.json, gpus.json). Files are cached in memory and
reloaded when they change on disk.
"""
import json
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional, Tuple

from processor.config import OUTPUT_DIR, OUTPUT_FILES

logger = logging.getLogger(__name__)

DATA_DIR: Path = OUTPUT_DIR

# type -> (path, mtime, profiles)
_cache: Dict[str, Tuple[Path, float, List[Dict[str, Any]]]] = {}


def load_profiles(profile_type: str) -> List[Dict[str, Any]]:
    """
    Load all profiles of one type.
    Raises KeyError for an unknown type; a missing file is an empty list.
    """
    path = DATA_DIR / OUTPUT_FILES[profile_type]

    if not path.exists():
        logger.warning(f"No profile file at {path}")
        return []

    mtime = path.stat().st_mtime
    cached = _cache.get(profile_type)
    if cached and cached[0] == path and cached[1] == mtime:
        return cached[2]

    with open(path, 'r', encoding='utf-8') as f:
        profiles = json.load(f)

    _cache[profile_type] = (path, mtime, profiles)
    logger.info(f"Loaded {len(profiles)} {profile_type} profiles from {path.name}")
    return profiles


def clear_cache():
    _cache.clear()


def get_all_profiles(profile_type: str, limit: int = 100, offset: int = 0) -> List[Dict[str, Any]]:
    """Fetch profiles with pagination, in file order."""
    return load_profiles(profile_type)[offset:offset + limit]


def get_profile_by_id(profile_type: str, profile_id: str) -> Optional[Dict[str, Any]]:
    """Fetch a single profile by id or slug."""
    for profile in load_profiles(profile_type):
        if str(profile.get('id')) == str(profile_id) or profile.get('slug') == profile_id:
            return profile
    return None


def _spec_values(profile: Dict[str, Any], label: str) -> List[str]:
    value = (profile.get('specs') or {}).get(label)
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def get_distinct_values(profile_type: str, label: str) -> List[str]:
    """
    Get unique values of one spec field (for filter dropdowns).
    Multi-valued fields contribute every segment.
    """
    values = set()
    for profile in load_profiles(profile_type):
        for val in _spec_values(profile, label):
            val = val.strip()
            if val:
                values.add(val)
    return sorted(values)


def search_by_filters(
    profile_type: str,
    filters: Dict[str, Any],
    limit: int = 10,
    offset: int = 0
) -> Dict[str, Any]:
    """
    Search profiles with multiple filters.

    'q' matches the profile name (case-insensitive substring); every other
    key is a spec label whose segments must contain the value
    (case-insensitive equality).
    """
    query = (filters.get('q') or '').strip().lower()
    spec_filters = {
        label: str(value).strip().lower()
        for label, value in filters.items()
        if label != 'q' and value not in (None, '')
    }

    results = []
    for profile in load_profiles(profile_type):
        if query and query not in (profile.get('name') or '').lower():
            continue

        matched = True
        for label, wanted in spec_filters.items():
            segments = [v.strip().lower() for v in _spec_values(profile, label)]
            if wanted not in segments:
                matched = False
                break

        if matched:
            results.append(profile)

    return {
        'results': results[offset:offset + limit],
        'total': len(results),
        'offset': offset,
        'limit': limit
    }


def get_stats() -> Dict[str, Any]:
    """Get store statistics."""
    counts = {}
    with_images = {}
    for profile_type in OUTPUT_FILES:
        profiles = load_profiles(profile_type)
        counts[profile_type] = len(profiles)
        with_images[profile_type] = sum(1 for p in profiles if (p.get('images') or {}).get('main'))

    return {
        'total_profiles': sum(counts.values()),
        'counts': counts,
        'with_images': with_images,
    }
