import os
import json
import logging
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)

@contextmanager
def safe_write(filepath, encoding='utf-8'):
    """
    Write a text file through a temporary sibling file.
    The target is replaced atomically only if the block completes,
    otherwise it is left untouched and the temporary file is removed.

    Args:
        filepath: Path to the target file
        encoding: Text encoding (default: utf-8)
    """
    dir_name = os.path.dirname(os.path.abspath(filepath))
    temp_path = os.path.join(dir_name, f".{os.path.basename(filepath)}.tmp")

    f = open(temp_path, 'w', encoding=encoding)
    try:
        yield f
        f.flush()
        os.fsync(f.fileno())
        f.close()
        os.replace(temp_path, filepath)
    except Exception as e:
        logger.error(f"Failed to safe_write to {filepath}: {e}")
        f.close()
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as os_err:
                logger.warning(f"Failed to remove temp file {temp_path}: {os_err}")
        raise


def write_json(filepath: str, data: Any):
    """Atomically dump JSON with stable formatting."""
    with safe_write(filepath) as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
