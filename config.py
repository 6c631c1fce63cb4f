import os
from pathlib import Path
from typing import Any, Dict

import yaml

from sqlite_ingest.errors import ConfigurationError


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-for-demo'
    OUTPUT_DIR = os.environ.get('CONVERTER_OUTPUT_DIR') or './instance'
    UPLOAD_DIR = os.environ.get('CONVERTER_UPLOAD_DIR') or './uploads'
    KEY_ROW = _int_env('CONVERTER_KEY_ROW', 1)
    TABLE_PREFIX = os.environ.get('CONVERTER_TABLE_PREFIX') or None
    LOG_LEVEL = os.environ.get('CONVERTER_LOG_LEVEL') or 'INFO'
    MAX_CONTENT_LENGTH = _int_env('MAX_CONTENT_LENGTH', 100 * 1024 * 1024)


def load_job(job_path: str) -> Dict[str, Any]:
    """
    Load a batch job file listing the sources for one output database.

    Relative paths inside the file are resolved against the file's directory.

    Returns:
        {"output": Path, "destroy_on_exit": bool,
         "sources": [{"path": Path, "format": str|None, "prefix": str|None, "key_row": int}]}
    """
    job_path = Path(job_path)
    if not job_path.is_file():
        raise ConfigurationError(f"Job file not found: {job_path}")

    with open(job_path, 'r', encoding='utf-8') as f:
        try:
            raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Job file {job_path} is not valid YAML: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Job file {job_path} must contain a mapping")
    if not raw.get('output'):
        raise ConfigurationError(f"Job file {job_path} has no 'output'")

    sources = raw.get('sources')
    if not isinstance(sources, list) or not sources:
        raise ConfigurationError(f"Job file {job_path} must list at least one source")

    base_dir = job_path.parent
    job = {
        "output": base_dir / raw['output'],
        "destroy_on_exit": bool(raw.get('destroy_on_exit', False)),
        "sources": []
    }

    for index, entry in enumerate(sources, 1):
        if isinstance(entry, str):
            entry = {"path": entry}
        if not isinstance(entry, dict) or not entry.get('path'):
            raise ConfigurationError(f"Source #{index} in {job_path} needs a 'path'")
        job["sources"].append({
            "path": base_dir / entry['path'],
            "format": entry.get('format'),
            "prefix": entry.get('prefix'),
            "key_row": entry.get('key_row', 1)
        })

    return job
