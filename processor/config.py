"""
Configuration constants for the comparison dataset processor
"""
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Input - scraped comparison chunks live next to the project
DATASET_DIR = Path(os.getenv("DATASET_DIR", PROJECT_ROOT.parent / "whole-dataset"))

# Output - processed profiles and localized images
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", PROJECT_ROOT / "data"))
IMAGES_DIR = Path(os.getenv("IMAGES_DIR", PROJECT_ROOT / "public" / "images"))

PROFILE_TYPES = ["laptop", "cpu", "gpu"]

# Scraped comparison file per profile type
DATASET_FILES = {
    "laptop": "scraped_data_chunk_final.json",
    "cpu": "cpu_scraped_data_chunk_final.json",
    "gpu": "gpu_scraped_data_chunk_final.json",
}

# Processed profile file per profile type
OUTPUT_FILES = {
    "laptop": "laptops.json",
    "cpu": "cpus.json",
    "gpu": "gpus.json",
}

# Review score keys are sometimes short names ("MacBook Air M2" vs "Apple MacBook Air M2")
NAME_MATCH_THRESHOLD = 90

# Images
IMAGE_HOST = "nanoreview.net"
IMAGE_URL_PREFIX = "/images"
REQUEST_TIMEOUT = 15
MAX_CONNECTIONS = 10
DOWNLOAD_BATCH_SIZE = 10
DELAY_BETWEEN_BATCHES = 0.5  # seconds

# User agents for rotation
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

# API
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
