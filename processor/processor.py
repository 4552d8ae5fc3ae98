"""
Comparison Dataset Processor

Contains:
1. Profile model and extraction from pairwise comparison records
2. File processing (load, dedupe, save)
3. Main entry points
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator
from rapidfuzz import fuzz, process
from rich.console import Console
from rich.table import Table

from .config import (
    DATASET_DIR, OUTPUT_DIR, IMAGES_DIR,
    DATASET_FILES, OUTPUT_FILES, PROFILE_TYPES,
    NAME_MATCH_THRESHOLD,
)
from .parser import SpecParser

# Setup
console = Console()
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# =========================================================================
# PROFILE MODEL
# =========================================================================

class HardwareProfile(BaseModel):
    """One deduplicated laptop/CPU/GPU with its parsed specs"""

    id: str
    name: str = ""
    slug: Optional[str] = None
    type: str
    images: Dict[str, str] = {}
    price: Optional[Any] = None
    scores: Dict[str, Any] = {}
    specs: Dict[str, Any] = {}

    @field_validator('id', mode='before')
    @classmethod
    def coerce_id(cls, v):
        """Ids are numeric on some pages and strings on others"""
        return str(v)

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v not in PROFILE_TYPES:
            raise ValueError(f'Unknown profile type {v!r} (expected one of {PROFILE_TYPES})')
        return v

    def multi_value_fields(self) -> List[str]:
        """Spec labels that were split into more than one value"""
        return [
            label for label, value in self.specs.items()
            if isinstance(value, list) and len(value) > 1
        ]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON export"""
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'type': self.type,
            'images': self.images,
            'price': self.price,
            'scores': self.scores,
            'specs': self.specs,
        }


# =========================================================================
# EXTRACTION LOGIC
# =========================================================================

def new_stats() -> Dict[str, int]:
    return {
        'records': 0,
        'skipped_records': 0,
        'profiles': 0,
        'duplicates': 0,
        'invalid': 0,
        'split_fields': 0,
    }


def _at(values: Optional[list], index: int) -> Any:
    if not isinstance(values, list) or index >= len(values):
        return None
    return values[index]


def match_score_key(name: str, values: Dict[str, Any]) -> Optional[str]:
    """
    Find the review score key for an item name.

    Exact key first, then a key that contains (or is contained in) the name,
    then a fuzzy match above NAME_MATCH_THRESHOLD.
    """
    if not values or not name:
        return None

    if name in values:
        return name

    for key in values:
        if key and (key in name or name in key):
            return key

    result = process.extractOne(
        name,
        [k for k in values if k],
        scorer=fuzz.token_sort_ratio,
        score_cutoff=NAME_MATCH_THRESHOLD
    )
    if result:
        return result[0]
    return None


def extract_item(comp: dict, index: int, profile_type: str) -> Optional[HardwareProfile]:
    """Build the profile of the item at position index (0 or 1) of a comparison."""
    metadata = comp.get('metadata')
    if not isinstance(metadata, dict):
        raise ValueError(f"metadata must be an object, got {type(metadata).__name__}")
    for field in ('images', 'prices', 'review_scores', 'specs'):
        if comp.get(field) is not None and not isinstance(comp[field], dict):
            raise ValueError(f"{field} must be an object, got {type(comp[field]).__name__}")

    item_id = _at(metadata.get('ids'), index)
    if not item_id:
        return None

    name = _at(metadata.get('names'), index) or ""
    slug = _at(metadata.get('slugs'), index)

    # images: {"Name 1": "url", "Name 2": "url"}
    item_images = {}
    images = comp.get('images')
    if images and images.get(name):
        item_images['main'] = images[name]

    prices = comp.get('prices')
    item_price = prices.get(name) if prices else None

    item_scores = {}
    for category, values in (comp.get('review_scores') or {}).items():
        if not isinstance(values, dict):
            continue
        key = match_score_key(name, values)
        if key is not None:
            item_scores[category] = values[key]

    raw_specs = {}
    for category, values in (comp.get('specs') or {}).items():
        if isinstance(values, dict) and name in values:
            raw_specs[category] = values[name]

    return HardwareProfile(
        id=item_id,
        name=name,
        slug=slug,
        type=profile_type,
        images=item_images,
        price=item_price,
        scores=item_scores,
        specs=SpecParser.parse_specs(raw_specs),
    )


def extract_profiles(
    comparisons: List[dict],
    profile_type: str,
    stats: Optional[Dict[str, int]] = None
) -> List[HardwareProfile]:
    """
    Deduplicate pairwise comparison records into one profile per item id.

    The first record that mentions an id wins; later ones are ignored, not merged.
    """
    if stats is None:
        stats = new_stats()

    seen: Dict[str, HardwareProfile] = {}

    for comp in comparisons:
        stats['records'] += 1

        metadata = comp.get('metadata') if isinstance(comp, dict) else None
        ids = metadata.get('ids') if isinstance(metadata, dict) else None
        if not isinstance(ids, list) or len(ids) < 2:
            stats['skipped_records'] += 1
            continue

        for index in (0, 1):
            item_id = ids[index]
            if not item_id:
                continue

            if str(item_id) in seen:
                stats['duplicates'] += 1
                continue

            try:
                profile = extract_item(comp, index, profile_type)
            except ValueError as e:
                logger.debug(f"Validation failed for {item_id}: {e}")
                stats['invalid'] += 1
                continue

            if profile is None:
                continue

            seen[profile.id] = profile
            stats['split_fields'] += len(profile.multi_value_fields())

    stats['profiles'] += len(seen)
    return list(seen.values())


# =========================================================================
# FILE LOGIC
# =========================================================================

def process_file(
    path: Path,
    profile_type: str,
    stats: Optional[Dict[str, int]] = None
) -> List[HardwareProfile]:
    """Load one scraped comparison file and extract its unique profiles."""
    console.print(f"[cyan]Processing {profile_type} from {path.name}...[/cyan]")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            comparisons = json.load(f)
    except FileNotFoundError:
        logger.error(f"Dataset file not found: {path}")
        return []
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse {path}: {e}")
        return []

    if not isinstance(comparisons, list):
        logger.error(f"Expected a list of comparisons in {path}, got {type(comparisons).__name__}")
        return []

    profiles = extract_profiles(comparisons, profile_type, stats)
    logger.info(f"Extracted {len(profiles)} unique {profile_type} profiles")
    return profiles


def save_profiles(profiles: List[HardwareProfile], output_path: Path):
    """Write profiles as pretty JSON."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump([p.to_dict() for p in profiles], f, indent=2, ensure_ascii=False)

    console.print(f"[green]✓ Saved {len(profiles)} profiles to {output_path}[/green]")


def run_processing(
    dataset_dir: Path = DATASET_DIR,
    output_dir: Path = OUTPUT_DIR,
    profile_types: Optional[List[str]] = None,
) -> Dict[str, Dict[str, int]]:
    """
    Process every profile type and save its output file.

    Returns per-type stats. A type whose dataset is missing or broken
    still gets an (empty) output file.
    """
    profile_types = profile_types or PROFILE_TYPES
    all_stats = {}

    for profile_type in profile_types:
        stats = new_stats()
        profiles = process_file(dataset_dir / DATASET_FILES[profile_type], profile_type, stats)
        save_profiles(profiles, output_dir / OUTPUT_FILES[profile_type])
        all_stats[profile_type] = stats

    return all_stats


def print_stats(all_stats: Dict[str, Dict[str, int]]):
    """Print processing statistics."""

    table = Table(title="Processing Summary")
    table.add_column("Type", style="cyan")
    table.add_column("Records", style="green")
    table.add_column("Skipped", style="yellow")
    table.add_column("Profiles", style="green")
    table.add_column("Duplicates", style="yellow")
    table.add_column("Invalid", style="red")
    table.add_column("Split Fields", style="magenta")

    for profile_type, stats in all_stats.items():
        table.add_row(
            profile_type,
            str(stats['records']),
            str(stats['skipped_records']),
            str(stats['profiles']),
            str(stats['duplicates']),
            str(stats['invalid']),
            str(stats['split_fields']),
        )

    console.print(table)


def main_processor_entry(
    dataset_dir: Path = None,
    output_dir: Path = None,
    profile_types: List[str] = None,
    with_images: bool = False,
    images_dir: Path = None,
):
    """Main entry point."""

    dataset_dir = dataset_dir or DATASET_DIR
    output_dir = output_dir or OUTPUT_DIR
    images_dir = images_dir or IMAGES_DIR

    start_time = datetime.now()

    all_stats = run_processing(dataset_dir, output_dir, profile_types)
    print_stats(all_stats)

    if with_images:
        from .images import localize_images, print_download_stats
        files = [OUTPUT_FILES[t] for t in (profile_types or PROFILE_TYPES)]
        print_download_stats(localize_images(output_dir, images_dir, files))

    elapsed = datetime.now() - start_time
    console.print(f"Completed in {elapsed.total_seconds():.1f}s")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Hardware comparison dataset processor")
    parser.add_argument(
        "--dataset-dir", "-d",
        type=Path,
        default=None,
        help=f"Directory with scraped comparison files (default: {DATASET_DIR})"
    )
    parser.add_argument(
        "--output-dir", "-o",
        type=Path,
        default=None,
        help=f"Directory for processed profiles (default: {OUTPUT_DIR})"
    )
    parser.add_argument(
        "--types", "-t",
        nargs="+",
        choices=PROFILE_TYPES,
        default=None,
        help="Profile types to process (default: all)"
    )
    parser.add_argument(
        "--images",
        action="store_true",
        help="Download images and rewrite their URLs to local paths"
    )

    args = parser.parse_args()
    main_processor_entry(
        dataset_dir=args.dataset_dir,
        output_dir=args.output_dir,
        profile_types=args.types,
        with_images=args.images,
    )
