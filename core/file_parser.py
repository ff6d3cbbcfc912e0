"""
Manifest file parsing for Manifold.

Manifest files hold the manifest JSON document: camelCase keys, the same
shape as the "manifest" object inside a snapshot file.
"""
import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from core.errors import ArgumentError, FormatError, NotFoundError
from core.manifest import Manifest

logger = logging.getLogger(__name__)


def parse_manifest_file(file_path: Union[str, Path]) -> Manifest:
    """
    Parse a manifest JSON file from disk.

    Args:
        file_path: Path to the JSON file

    Returns:
        The parsed Manifest

    Raises:
        NotFoundError: the file does not exist
        FormatError: the file is not a valid manifest document
    """
    path = Path(file_path)

    if not path.is_file():
        raise NotFoundError(f"Manifest file not found: {path}", location=str(path))

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FormatError(f"Cannot read manifest file: {e}", source=str(path))

    manifest = parse_manifest_content(content, source=str(path))
    logger.debug(f"Parsed manifest {manifest.name} {manifest.version} from {path}")
    return manifest


def parse_manifest_content(content: str, source: Optional[str] = None) -> Manifest:
    """
    Parse manifest JSON text.

    Args:
        content: JSON string content
        source: Where the content came from (used in error messages)
    """
    if content is None or not content.strip():
        raise ArgumentError("Manifest content cannot be empty", argument="content")

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise FormatError(f"Invalid manifest JSON: {e}", source=source)

    return parse_manifest_dict(document, source=source)


def parse_manifest_dict(document: dict, source: Optional[str] = None) -> Manifest:
    """Build a Manifest from an already-parsed JSON document."""
    if not isinstance(document, dict):
        raise FormatError("Manifest document must be a JSON object", source=source)

    try:
        return Manifest.model_validate(document)
    except ValidationError as e:
        raise FormatError(f"Invalid manifest: {e}", source=source)
