"""
Dictionary document loading.

A dictionary document is a JSON object mapping each word (any case) to
{"def": str, "translations": {lang: str}}. A plain JSON list of words is
accepted too; those entries get an empty definition and no translations.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, Mapping

from pydantic import ValidationError

from .index import DictionaryIndex
from .models import WordEntry, LoadReport

log = logging.getLogger(__name__)

BUNDLED_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class DictionaryLoadError(Exception):
    """Raised when a dictionary document cannot be read or parsed."""

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to load dictionary {self.path}: {reason}")


def dictionary_path(data_dir: str | Path, lang: str) -> Path:
    """Conventional location of the document for `lang`: <data_dir>/<lang>.json."""
    return Path(data_dir) / f"{lang}.json"


def parse_document(data: object, path: str | Path = "<memory>") -> Dict[str, WordEntry]:
    """Convert a decoded JSON document into uppercased word entries."""
    if isinstance(data, list):
        entries = {}
        for word in data:
            if not isinstance(word, str):
                raise DictionaryLoadError(path, f"expected a word string, got {word!r}")
            entries[word.upper()] = WordEntry()
        return entries

    if not isinstance(data, dict):
        raise DictionaryLoadError(path, f"expected a JSON object or list, got {type(data).__name__}")

    entries = {}
    for word, raw in data.items():
        try:
            entries[word.upper()] = WordEntry.model_validate(raw)
        except ValidationError as e:
            raise DictionaryLoadError(path, f"invalid entry for '{word}': {e}") from e
    return entries


def _read_document(path: Path):
    """Read raw JSON from `path`, turning every read failure into DictionaryLoadError."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise DictionaryLoadError(path, "file not found") from e
    except json.JSONDecodeError as e:
        raise DictionaryLoadError(path, f"invalid JSON ({e})") from e
    except UnicodeDecodeError as e:
        raise DictionaryLoadError(path, f"not UTF-8 text ({e.reason})") from e
    except OSError as e:
        raise DictionaryLoadError(path, e.strerror or str(e)) from e


def load_dictionary(path: str | Path) -> Dict[str, WordEntry]:
    """
    Read one dictionary document from disk.

    Raises:
        DictionaryLoadError: If the file cannot be read, is not valid JSON,
            or holds entries of the wrong shape
    """
    path = Path(path)
    entries = parse_document(_read_document(path), path)
    log.info("Loaded %s words from %s", f"{len(entries):,}", path)
    return entries


async def load_languages(
    index: DictionaryIndex,
    sources: Mapping[str, str | Path],
) -> LoadReport:
    """
    Load several languages concurrently and register them on `index`.

    Files are read in worker threads. Registration happens afterwards in the
    order of `sources`, so the index fallback order never depends on which
    read finished first. A failed language is reported, not raised; the
    others are still registered.
    """
    langs = list(sources)
    results = await asyncio.gather(
        *(asyncio.to_thread(load_dictionary, sources[lang]) for lang in langs),
        return_exceptions=True,
    )

    report = LoadReport()
    for lang, result in zip(langs, results):
        if isinstance(result, DictionaryLoadError):
            log.warning("Dictionary for %s not loaded: %s", lang, result.reason)
            report.failed[lang] = str(result)
            continue
        if isinstance(result, BaseException):
            raise result
        index.register_language(lang, result)
        report.loaded[lang] = len(result)

    return report


def sort_dictionary(path: str | Path) -> int:
    """
    Rewrite a dictionary document with its words in case-insensitive order.

    Returns the number of words written.
    """
    path = Path(path)
    data = _read_document(path)

    if isinstance(data, list):
        ordered = sorted(data, key=lambda w: (w.casefold(), w))
    elif isinstance(data, dict):
        ordered = {k: data[k] for k in sorted(data, key=lambda w: (w.casefold(), w))}
    else:
        raise DictionaryLoadError(path, f"expected a JSON object or list, got {type(data).__name__}")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(ordered, f, indent=2, ensure_ascii=False)
        f.write("\n")

    log.info("Sorted dictionary %s", path)
    return len(ordered)
