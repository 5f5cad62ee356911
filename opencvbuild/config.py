import json
import os
from .cli_logger import logger
from .utils import highlight

MANIFEST_FILE = "package.json"
MANIFEST_SECTION = "opencv4nodejs"

def load_manifest(path="."):
    """
    Read the project manifest from the given directory.

    Returns a (file, data) tuple, or None when there is no manifest.
    Malformed JSON is not caught here; the caller decides how to degrade.
    """
    manifest_path = os.path.abspath(os.path.join(path, MANIFEST_FILE))
    if not os.path.exists(manifest_path):
        logger.debug(f"No {MANIFEST_FILE} found at {manifest_path}")
        return None
    logger.info(f"Looking for {MANIFEST_SECTION} options in {highlight(manifest_path)}")
    with open(manifest_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return manifest_path, data

def read_manifest_section(path="."):
    """Return the opencv4nodejs section of the manifest, or an empty dict."""
    manifest = load_manifest(path)
    if manifest is None:
        return {}
    manifest_path, data = manifest
    if not isinstance(data, dict) or not data:
        return {}
    section = data.get(MANIFEST_SECTION)
    if section and not isinstance(section, dict):
        raise ValueError(f"The {MANIFEST_SECTION} section in {manifest_path} must be an object")
    if section:
        logger.info(f"Found {MANIFEST_SECTION} section in {highlight(manifest_path)}")
        return section
    logger.info(f"No {MANIFEST_SECTION} section found in {highlight(manifest_path)}")
    return {}
