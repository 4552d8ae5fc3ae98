"""
Parser Module
Contains: spec string cleaner, per-category segmenters and the SpecParser dispatcher.

Scraped comparison pages list every configuration option of a field in one
string, usually smashed together with no separator ("16GB8GB",
"1920 x 1200 (OLED)2560 x 1600"). Each segmenter knows the vocabulary of one
category and breaks the string back into its values, in source order.
"""
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


# =========================================================================
# CLEANER
# =========================================================================

# List markup leaves "- \n\t\t\t\t" in front of most values
_LEADING_MARKER = re.compile(r'^- \s+[\n\t]*')


def clean_spec_string(raw: Optional[str]) -> str:
    """Strip the leading list-marker artifact and surrounding whitespace."""
    if not raw:
        return ""
    return _LEADING_MARKER.sub('', raw).strip()


def _finalize(parts: List[str]) -> List[str]:
    """Trim every part and drop the empty ones."""
    return [p.strip() for p in parts if p and p.strip()]


def _split_at(text: str, positions: List[int]) -> List[str]:
    """Cut text at the given offsets (unsorted, duplicates allowed)."""
    cuts = sorted(set(p for p in positions if 0 < p < len(text)))
    parts = []
    start = 0
    for cut in cuts:
        parts.append(text[start:cut])
        start = cut
    parts.append(text[start:])
    return _finalize(parts)


# =========================================================================
# SEGMENTERS
# =========================================================================

# A digit right after the unit can only start the next value
RAM_BREAK = re.compile(r'(?<=GB)(?=\d)')
STORAGE_BREAK = re.compile(r'(?<=GB|TB)(?=\d)')

RESOLUTION_PATTERN = re.compile(r'\d{3,4}\s*x\s*\d{3,4}')

CPU_BRANDS = ('Intel', 'AMD', 'Apple', 'Qualcomm', 'Snapdragon')
GPU_BRANDS = ('GeForce', 'Radeon', 'Intel', 'Apple', 'Nvidia', 'Adreno', 'Qualcomm')


def _brand_break(brands) -> re.Pattern:
    return re.compile('(?=(?:' + '|'.join(re.escape(b) for b in brands) + '))')


CPU_BREAK = _brand_break(CPU_BRANDS)
GPU_BREAK = _brand_break(GPU_BRANDS)

MEMORY_TYPE_DELIMITER = ' - '


def split_ram(raw: Optional[str]) -> List[str]:
    """
    Split concatenated RAM options.

    "16GB8GB" -> ["16GB", "8GB"]
    """
    clean = clean_spec_string(raw)
    if not clean:
        return []
    return _finalize(RAM_BREAK.split(clean))


def split_storage(raw: Optional[str]) -> List[str]:
    """
    Split concatenated storage options (GB and TB units).

    "256GB1TB" -> ["256GB", "1TB"]
    """
    clean = clean_spec_string(raw)
    if not clean:
        return []
    return _finalize(STORAGE_BREAK.split(clean))


def split_display(raw: Optional[str]) -> List[str]:
    """
    Split concatenated display resolutions.

    Resolutions look like "1920 x 1200" and may carry an annotation such as
    "(OLED)" or "120Hz" glued to the next resolution. We break right before
    every resolution that is not at the start of the string, so the
    annotation stays with the resolution it describes:

        "1920 x 1200 (OLED)2560 x 1600" -> ["1920 x 1200 (OLED)", "2560 x 1600"]

    Resolutions are matched left to right without overlap, so "1920" is never
    cut into "1" + "920 x ...". Annotation text that itself reads like
    "NNN x NNN" will still cause a split.
    """
    clean = clean_spec_string(raw)
    if not clean:
        return []

    # No resolution-like text at all, leave it alone
    if ' x ' not in clean:
        return [clean]

    starts = [m.start() for m in RESOLUTION_PATTERN.finditer(clean)]
    return _split_at(clean, starts)


def split_cpu(raw: Optional[str]) -> List[str]:
    """
    Split concatenated processor names on brand tokens.

    "Intel Core i7-12700HAMD Ryzen 7 6800H" -> ["Intel Core i7-12700H", "AMD Ryzen 7 6800H"]

    Names that contain two brand tokens ("Qualcomm Snapdragon X Elite") are
    split as well.
    """
    clean = clean_spec_string(raw)
    if not clean:
        return []
    return _finalize(CPU_BREAK.split(clean))


def split_gpu(raw: Optional[str]) -> List[str]:
    """Split concatenated graphics names on brand tokens (same rule as CPU)."""
    clean = clean_spec_string(raw)
    if not clean:
        return []
    return _finalize(GPU_BREAK.split(clean))


def split_dimensions(raw: Optional[str]) -> List[str]:
    """
    Separate metric and imperial dimensions smashed together.

    "300 x 200 mm11 x 8 inches" -> ["300 x 200 mm", "11 x 8 inches"]
    """
    clean = clean_spec_string(raw)
    if not clean:
        return []

    if 'mm' not in clean or 'inches' not in clean:
        return [clean]

    # "nm" shows up in place of "mm" on some pages
    positions = []
    for unit in ('nm', 'mm', 'inches'):
        idx = clean.find(unit)
        if idx != -1:
            positions.append(idx + len(unit))

    return _split_at(clean, positions)


def split_memory_types(raw: Optional[str]) -> List[str]:
    """
    Split memory types listed with a spaced dash.

    "LPDDR5-8400 - DDR5-6400" -> ["LPDDR5-8400", "DDR5-6400"]
    """
    clean = clean_spec_string(raw)
    if not clean:
        return []

    if MEMORY_TYPE_DELIMITER not in clean:
        return [clean]

    return _finalize(clean.split(MEMORY_TYPE_DELIMITER))


# =========================================================================
# DISPATCH
# =========================================================================

class SpecCategory(str, Enum):
    """Spec categories that get split into a list of values."""

    RAM = 'ram'
    STORAGE = 'storage'
    DISPLAY = 'display'
    CPU = 'cpu'
    GPU = 'gpu'
    DIMENSIONS = 'dimensions'
    MEMORY_TYPE = 'memory-type'

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional['SpecCategory']:
        """Resolve a scraped spec label ("Processor", "Graphics card", ...) to a category."""
        if not label:
            return None
        key = re.sub(r'[\s_]+', ' ', label).strip().lower()
        return LABEL_ALIASES.get(key)

    @property
    def segmenter(self) -> Callable[[Optional[str]], List[str]]:
        return SEGMENTERS[self]


SEGMENTERS: Dict[SpecCategory, Callable[[Optional[str]], List[str]]] = {
    SpecCategory.RAM: split_ram,
    SpecCategory.STORAGE: split_storage,
    SpecCategory.DISPLAY: split_display,
    SpecCategory.CPU: split_cpu,
    SpecCategory.GPU: split_gpu,
    SpecCategory.DIMENSIONS: split_dimensions,
    SpecCategory.MEMORY_TYPE: split_memory_types,
}


# Lower-cased scraped labels -> category
LABEL_ALIASES: Dict[str, SpecCategory] = {
    # RAM
    'ram': SpecCategory.RAM,
    'ram size': SpecCategory.RAM,
    'memory': SpecCategory.RAM,
    'memory size': SpecCategory.RAM,
    # Storage
    'storage': SpecCategory.STORAGE,
    'storage capacity': SpecCategory.STORAGE,
    'ssd': SpecCategory.STORAGE,
    # Display
    'display': SpecCategory.DISPLAY,
    'resolution': SpecCategory.DISPLAY,
    'display resolution': SpecCategory.DISPLAY,
    'screen resolution': SpecCategory.DISPLAY,
    # CPU
    'cpu': SpecCategory.CPU,
    'processor': SpecCategory.CPU,
    'chipset': SpecCategory.CPU,
    # GPU
    'gpu': SpecCategory.GPU,
    'graphics': SpecCategory.GPU,
    'graphics card': SpecCategory.GPU,
    'video card': SpecCategory.GPU,
    # Dimensions
    'dimensions': SpecCategory.DIMENSIONS,
    # Memory type
    'memory-type': SpecCategory.MEMORY_TYPE,
    'memory type': SpecCategory.MEMORY_TYPE,
    'memory types': SpecCategory.MEMORY_TYPE,
    'ram type': SpecCategory.MEMORY_TYPE,
}


def segment(category, raw: Optional[str]) -> List[str]:
    """Split raw with the segmenter of category (a SpecCategory or its value)."""
    return SpecCategory(category).segmenter(raw)


class SpecParser:
    """Applies the right segmenter to every recognised field of a profile's specs."""

    @classmethod
    def parse_value(cls, label: str, raw: Any) -> Any:
        """Segment one field; values of unrecognised labels come back untouched."""
        category = SpecCategory.from_label(label)
        if category is None:
            return raw
        if raw is not None and not isinstance(raw, str):
            # Already structured (re-processing an output file)
            if isinstance(raw, list):
                return [str(v) for v in raw if str(v).strip()]
            raw = str(raw)
        return category.segmenter(raw)

    @classmethod
    def parse_specs(cls, specs: Dict[str, Any]) -> Dict[str, Any]:
        """Return a new {label: value} dict with recognised fields split into lists."""
        if not specs:
            return {}
        return {label: cls.parse_value(label, raw) for label, raw in specs.items()}
