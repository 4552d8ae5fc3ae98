"""
Image Localizer

Downloads remote profile images once and rewrites the profile data to
point at the local copies.

    https://nanoreview.net/common/images/laptop/xxx.jpeg
        -> public/images/laptop-xxx.jpeg
        -> /images/laptop-xxx.jpeg
"""
import asyncio
import json
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

import aiohttp
from rich.console import Console
from rich.progress import Progress
from rich.table import Table

from .config import (
    IMAGES_DIR, OUTPUT_DIR, OUTPUT_FILES, IMAGE_HOST, IMAGE_URL_PREFIX,
    REQUEST_TIMEOUT, MAX_CONNECTIONS, DOWNLOAD_BATCH_SIZE,
    DELAY_BETWEEN_BATCHES, USER_AGENTS,
)

console = Console()
logger = logging.getLogger(__name__)


class ImageFetchError(Exception):
    """Raised when an image URL does not answer with HTTP 200"""


@dataclass
class ImageTarget:
    local_path: Path
    local_url: str
    filename: str


def get_headers() -> dict:
    """Get request headers with random user agent"""
    return {
        "User-Agent": random.choice(USER_AGENTS),
        "Accept": "image/avif,image/webp,image/apng,image/*,*/*;q=0.8",
        "Referer": f"https://{IMAGE_HOST}/",
    }


# =========================================================================
# URL HANDLING
# =========================================================================

def _walk_main_refs(obj: Any):
    """Yield every dict holding a string 'main' image reference."""
    if isinstance(obj, dict):
        if isinstance(obj.get('main'), str):
            yield obj
        for value in obj.values():
            yield from _walk_main_refs(value)
    elif isinstance(obj, list):
        for value in obj:
            yield from _walk_main_refs(value)


def extract_image_urls(data: Any) -> List[str]:
    """Collect unique remote image URLs, in first-seen order."""
    urls = {}
    for ref in _walk_main_refs(data):
        if IMAGE_HOST in ref['main']:
            urls[ref['main']] = None
    return list(urls)


def get_local_path(image_url: str, images_dir: Path = IMAGES_DIR) -> Optional[ImageTarget]:
    """
    Derive the local file for an image URL from its last two path segments.

    /common/images/laptop/xxx.jpeg -> laptop-xxx.jpeg
    """
    parts = [p for p in urlparse(image_url).path.split('/') if p]
    if len(parts) < 2:
        logger.error(f"Cannot derive local image name from URL: {image_url}")
        return None

    category, filename = parts[-2], parts[-1]
    local_filename = f"{category}-{filename}"

    return ImageTarget(
        local_path=images_dir / local_filename,
        local_url=f"{IMAGE_URL_PREFIX}/{local_filename}",
        filename=local_filename,
    )


def rewrite_image_urls(data: Any, url_map: Dict[str, str]) -> int:
    """Replace mapped 'main' URLs in place. Returns the number of replacements."""
    replaced = 0
    for ref in _walk_main_refs(data):
        if ref['main'] in url_map:
            ref['main'] = url_map[ref['main']]
            replaced += 1
    return replaced


# =========================================================================
# DOWNLOAD LOGIC
# =========================================================================

async def download_image(session: aiohttp.ClientSession, image_url: str, local_path: Path) -> bool:
    """
    Download one image unless it is already on disk.

    Returns True when the file was downloaded, False when it already existed.
    """
    if local_path.exists():
        logger.debug(f"Already exists: {local_path.name}")
        return False

    local_path.parent.mkdir(parents=True, exist_ok=True)

    async with session.get(
        image_url,
        headers=get_headers(),
        timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
    ) as response:
        if response.status != 200:
            raise ImageFetchError(f"HTTP {response.status}: {image_url}")
        body = await response.read()

    local_path.write_bytes(body)
    logger.debug(f"Downloaded: {local_path.name}")
    return True


async def _download_batch(
    session: aiohttp.ClientSession,
    batch: List[Tuple[str, ImageTarget]],
) -> list:
    tasks = [download_image(session, url, target.local_path) for url, target in batch]
    return await asyncio.gather(*tasks, return_exceptions=True)


async def download_images(
    urls: Iterable[str],
    images_dir: Path = IMAGES_DIR,
    session: Optional[aiohttp.ClientSession] = None,
) -> Tuple[Dict[str, int], Dict[str, str]]:
    """
    Download all images in batches.

    A failed URL is logged and counted, never fatal. Returns the stats and
    a map of original URL -> local URL for every image present on disk.
    """
    stats = {'total': 0, 'downloaded': 0, 'skipped': 0, 'failed': 0}
    url_map: Dict[str, str] = {}

    # One download per local file; other URLs naming the same file share it
    targets = []
    aliases: Dict[Path, List[str]] = {}
    for url in urls:
        stats['total'] += 1
        target = get_local_path(url, images_dir)
        if target is None:
            stats['failed'] += 1
            continue
        if target.local_path in aliases:
            aliases[target.local_path].append(url)
            continue
        aliases[target.local_path] = []
        targets.append((url, target))

    if not targets:
        return stats, url_map

    owns_session = session is None
    if owns_session:
        connector = aiohttp.TCPConnector(limit=MAX_CONNECTIONS)
        timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT * 2)
        session = aiohttp.ClientSession(connector=connector, timeout=timeout)

    try:
        with Progress(console=console) as progress:
            task = progress.add_task("[cyan]Downloading images...", total=len(targets))

            for start in range(0, len(targets), DOWNLOAD_BATCH_SIZE):
                batch = targets[start:start + DOWNLOAD_BATCH_SIZE]
                results = await _download_batch(session, batch)

                for (url, target), result in zip(batch, results):
                    shared = aliases[target.local_path]
                    if isinstance(result, Exception):
                        logger.error(f"Failed: {url} - {result}")
                        stats['failed'] += 1 + len(shared)
                        continue
                    if result:
                        stats['downloaded'] += 1
                    else:
                        stats['skipped'] += 1
                    stats['skipped'] += len(shared)
                    for alias in [url] + shared:
                        url_map[alias] = target.local_url

                progress.update(task, advance=len(batch))

                # Rate limiting
                if start + DOWNLOAD_BATCH_SIZE < len(targets):
                    await asyncio.sleep(DELAY_BETWEEN_BATCHES)
    finally:
        if owns_session:
            await session.close()

    return stats, url_map


# =========================================================================
# MAIN PIPELINE
# =========================================================================

def _load_json(path: Path) -> Optional[Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError:
        logger.warning(f"Profile file not found, skipping: {path}")
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse {path}: {e}")
    return None


def localize_images(
    data_dir: Path = OUTPUT_DIR,
    images_dir: Path = IMAGES_DIR,
    files: Optional[List[str]] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> Dict[str, int]:
    """
    Download every remote image referenced by the profile files and rewrite
    the files to use local paths. Only URLs whose image ended up on disk
    are rewritten.
    """
    files = files or list(OUTPUT_FILES.values())

    documents = {}
    for name in files:
        data = _load_json(data_dir / name)
        if data is not None:
            documents[name] = data

    urls = extract_image_urls(list(documents.values()))
    console.print(f"Found {len(urls)} unique image URLs")

    stats, url_map = asyncio.run(download_images(urls, images_dir, session))

    stats['rewritten'] = 0
    for name, data in documents.items():
        stats['rewritten'] += rewrite_image_urls(data, url_map)
        with open(data_dir / name, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        console.print(f"[green]✓ Updated: {name}[/green]")

    return stats


def print_download_stats(stats: Dict[str, int]):
    """Print download statistics."""

    table = Table(title="Image Downloads")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Unique URLs", str(stats.get('total', 0)))
    table.add_row("Downloaded", str(stats.get('downloaded', 0)))
    table.add_row("Already Present", str(stats.get('skipped', 0)))
    table.add_row("Failed", f"[red]{stats.get('failed', 0)}[/red]")
    table.add_row("References Rewritten", str(stats.get('rewritten', 0)))

    console.print(table)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Download profile images and rewrite URLs to local paths")
    parser.add_argument("--data-dir", type=Path, default=OUTPUT_DIR, help="Directory with profile JSON files")
    parser.add_argument("--images-dir", type=Path, default=IMAGES_DIR, help="Directory to store images in")

    args = parser.parse_args()
    print_download_stats(localize_images(args.data_dir, args.images_dir))
