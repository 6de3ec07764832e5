import os

# Default assets path - can be overridden by env var
ASSETS_PATH = os.environ.get("UASSET_ASSETS_PATH", os.getcwd())

# Output paths
OUTPUT_DIR = os.environ.get("UASSET_OUTPUT_DIR", os.path.join(os.getcwd(), "output"))
JSON_DIR = os.path.join(OUTPUT_DIR, "json")
THUMBNAILS_DIR = os.path.join(OUTPUT_DIR, "thumbnails")
