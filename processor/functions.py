#!/usr/bin/env python3
"""
Functions Module - Comparison helpers for the processed profiles.
"""
import json
from pathlib import Path
from typing import List, Dict, Tuple, Any, Optional

from .config import OUTPUT_DIR, OUTPUT_FILES


def load_profiles(profile_type: str, data_dir: Path = OUTPUT_DIR) -> List[Dict]:
    """Load all profiles of one type from its JSON file."""
    with open(data_dir / OUTPUT_FILES[profile_type], 'r', encoding='utf-8') as f:
        return json.load(f)


def get_comparisons(items: List[Any], num: int) -> List[Tuple[Any, Any]]:
    """
    Build num comparison pairs from neighbouring items, wrapping around.

    Args:
        items: Items to pair up
        num: Number of pairs

    Returns:
        [(items[0], items[1]), (items[1], items[2]), ..., (items[n-1], items[0]), ...]
    """
    if not items:
        return []

    return [
        (items[i % len(items)], items[(i + 1) % len(items)])
        for i in range(max(0, num))
    ]


def format_specs(profile: Dict, labels: Optional[List[str]] = None) -> str:
    """One-line summary of a profile's parsed specs."""
    specs = profile.get('specs') or {}
    labels = labels or list(specs)
    parts = []
    for label in labels:
        value = specs.get(label)
        if value in (None, [], ''):
            continue
        if isinstance(value, list):
            value = " / ".join(str(v) for v in value)
        parts.append(f"{label}: {value}")
    return "; ".join(parts)


def print_comparisons(profile_type: str, num: int = 10, data_dir: Path = OUTPUT_DIR) -> None:
    """
    Print num comparison pairs for one profile type.

    Args:
        profile_type: laptop, cpu or gpu
        num: Number of pairs (default 10)
    """
    profiles = load_profiles(profile_type, data_dir)
    pairs = get_comparisons(profiles, num)

    if not pairs:
        print(f"No {profile_type} profiles found in {data_dir}")
        return

    print()
    print("=" * 100)
    print(f"{len(pairs)} {profile_type.upper()} COMPARISONS")
    print("=" * 100)

    for i, (left, right) in enumerate(pairs, 1):
        print(f"{i:>3}. {left.get('name', '?')}  vs  {right.get('name', '?')}")
        print(f"     {format_specs(left)}")
        print(f"     {format_specs(right)}")

    print("-" * 100)


# ============================================================================
# CLI Interface
# ============================================================================

if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] in OUTPUT_FILES:
        try:
            num = int(sys.argv[2]) if len(sys.argv) > 2 else 10
            print_comparisons(sys.argv[1], num)
        except ValueError:
            print("Usage: python -m processor.functions <laptop|cpu|gpu> [num]")
        except FileNotFoundError as e:
            print(f"Missing profile file: {e.filename}. Run python -m processor.processor first.")
    else:
        print("Usage: python -m processor.functions <laptop|cpu|gpu> [num]")
        print("Example: python -m processor.functions laptop 5")
