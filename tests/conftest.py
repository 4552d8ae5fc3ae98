import json

import pytest

import db

LAPTOP_A = "Apple MacBook Air 13 M3"
LAPTOP_B = "Lenovo Yoga Slim 7 14"
LAPTOP_C = "ASUS Zenbook 14 OLED"

IMG = "https://nanoreview.net/common/images/laptop/{}.jpeg"


@pytest.fixture
def comparisons():
    """Three pairwise laptop comparisons covering three unique items."""
    return [
        {
            "metadata": {
                "ids": [101, 202],
                "names": [LAPTOP_A, LAPTOP_B],
                "slugs": ["apple-macbook-air-13-m3", "lenovo-yoga-slim-7-14"],
            },
            "images": {LAPTOP_A: IMG.format("macbook-air-m3"), LAPTOP_B: IMG.format("yoga-slim-7")},
            "prices": {LAPTOP_A: "$1099", LAPTOP_B: "$999"},
            "review_scores": {
                "Display": {LAPTOP_A: 82, LAPTOP_B: 88},
                # Short names in score tables
                "Battery": {"MacBook Air 13 M3": 95, "Yoga Slim 7 14": 80},
            },
            "specs": {
                "RAM": {LAPTOP_A: "- \n\t\t\t\t8GB16GB24GB", LAPTOP_B: "- \n\t\t\t\t16GB32GB"},
                "Processor": {LAPTOP_A: "Apple M3", LAPTOP_B: "Intel Core Ultra 7 155HAMD Ryzen 7 8840U"},
                "Display": {LAPTOP_A: "2560 x 1664", LAPTOP_B: "1920 x 1200 (IPS)2880 x 1800 (OLED)"},
                "Weight": {LAPTOP_A: "1.24 kg", LAPTOP_B: "1.39 kg"},
            },
        },
        {
            # Same MacBook again, with different data: must be ignored
            "metadata": {
                "ids": [101, 303],
                "names": [LAPTOP_A + " (dup)", LAPTOP_C],
                "slugs": ["dup", "asus-zenbook-14-oled"],
            },
            "images": {LAPTOP_C: IMG.format("zenbook-14")},
            "prices": {},
            "review_scores": {"Display": {LAPTOP_C: 90}},
            "specs": {
                "Storage": {LAPTOP_C: "512GB1TB"},
                "Memory type": {LAPTOP_C: "- \n\t\tLPDDR5x-7467 - LPDDR5-6400"},
            },
        },
        {"metadata": {"ids": [404], "names": ["Lonely laptop"]}},
        {"images": {}},
    ]


@pytest.fixture
def profile_store(tmp_path, monkeypatch):
    """Point db at a temporary directory; returns a writer for profile files."""
    monkeypatch.setattr(db, "DATA_DIR", tmp_path)
    db.clear_cache()

    def write(name, profiles):
        (tmp_path / name).write_text(json.dumps(profiles), encoding="utf-8")

    yield write
    db.clear_cache()
