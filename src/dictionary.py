#!/usr/bin/env python3
# dictionary.py - Ordered reading -> entries store backing the system, learning
#                 and prediction dictionaries

import bisect
import logging
import os
import tempfile

import orjson

from word import (
    MalformedEntry,
    decode_entry,
    decode_successor,
    encode_entry,
    encode_successor,
)

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    """Raised when the file backing a dictionary store cannot be opened."""


class DictionaryStore:
    """
    Ordered mapping from a key string to a list of Words.

    All three dictionaries share this class:

        system      read-only, keyed by reading
        learning    read-write, keyed by reading
        prediction  read-write, keyed by "reading,lid,rid,surface"; the
                    successor words carry their own reading

    File format (JSON, written with orjson):
        {
            "きょう": ["1,1,100,今日", "1,1,300,京"],
            ...
        }
    Prediction stores use "reading,lid,rid,cost,surface" records instead.

    Every mutation rewrites the whole file through a temporary file,
    fsync and os.replace, so a learned selection survives a crash as soon
    as the call returns. Keys are kept sorted for browse_prefix().

    I/O problems never escape the store: reads come back empty, writes
    return False, and both are logged.
    """

    def __init__(self, path=None, read_only=False, keyed_by_reading=True, name='dictionary'):
        """
        Args:
            path: JSON file backing the store. None keeps the store in memory.
            read_only: Reject insert/remove/import (system dictionary)
            keyed_by_reading: True when the key is the reading of every entry.
                              False for the prediction store, whose records
                              embed the successor's reading.
            name: Label used in log messages
        """
        self.path = path
        self.read_only = read_only
        self.keyed_by_reading = keyed_by_reading
        self.name = name
        self._entries = {}  # key -> [Word, ...]
        self._keys = []     # sorted keys of _entries
        self._opened = path is None
        self._backup_pending = False

    # ─── Lifecycle ────────────────────────────────────────────────────

    def open(self, create=True):
        """
        Load the backing file.

        A missing file starts an empty store when ``create`` is True
        (learning and prediction dictionaries).

        Raises:
            StoreUnavailable: if the file is missing (and create is False),
                              unreadable, or not a JSON object
        """
        self._entries = {}
        self._keys = []
        self._opened = False
        self._backup_pending = False

        if self.path is None:
            self._opened = True
            return self

        if not os.path.exists(self.path):
            if not create:
                raise StoreUnavailable(f'{self.name} not found: {self.path}')
            logger.info(f'{self.name} not found, starting empty: {self.path}')
            self._opened = True
            return self

        try:
            with open(self.path, 'rb') as f:
                data = orjson.loads(f.read())
        except orjson.JSONDecodeError as e:
            raise StoreUnavailable(f'Failed to parse {self.name}: {self.path} - {e}') from e
        except OSError as e:
            raise StoreUnavailable(f'Failed to read {self.name}: {self.path} - {e}') from e

        if not isinstance(data, dict):
            raise StoreUnavailable(f'Invalid {self.name} format (expected dict): {self.path}')

        dropped = 0
        for key, records in data.items():
            if not isinstance(records, list):
                logger.warning(f'{self.name}: dropping non-list value at {key!r}')
                continue
            words = self._decode_records(key, records)
            dropped += len(records) - len(words)
            if words:
                self._entries[key] = words
        self._keys = sorted(self._entries)
        self._opened = True

        logger.info(f'Loaded {self.name}: {self.path} ({len(self._keys)} keys, {self.entry_count()} entries'
                    + (f', {dropped} malformed entries dropped)' if dropped else ')'))
        return self

    def open_empty(self, backup=False):
        """
        Start empty without reading the backing file.

        With ``backup``, a file already at ``path`` is moved to
        "<path>.bak" before the first write replaces it.
        """
        self._entries = {}
        self._keys = []
        self._opened = True
        self._backup_pending = backup and self.path is not None
        return self

    def close(self):
        self._entries = {}
        self._keys = []
        self._opened = False

    @property
    def is_open(self):
        return self._opened

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __len__(self):
        return len(self._keys)

    def __contains__(self, key):
        return key in self._entries

    def entry_count(self):
        return sum(len(words) for words in self._entries.values())

    # ─── Record Codec ─────────────────────────────────────────────────

    def _decode_records(self, key, records):
        words = []
        for record in records:
            try:
                if self.keyed_by_reading:
                    words.append(decode_entry(key, record))
                else:
                    words.append(decode_successor(record))
            except MalformedEntry as e:
                logger.warning(f'{self.name}: dropping malformed entry at {key!r}: {e}')
        return words

    def _encode_word(self, word):
        if self.keyed_by_reading:
            return encode_entry(word)
        return encode_successor(word)

    # ─── Queries ──────────────────────────────────────────────────────

    def find(self, key):
        """Return the entries stored at ``key`` (empty list if none)."""
        return list(self._entries.get(key, ()))

    def browse_prefix(self, key):
        """
        Iterate (key, entries) for every stored key >= ``key`` in ascending
        order. The caller stops once a key no longer starts with its query.
        """
        index = bisect.bisect_left(self._keys, key)
        # Snapshot so the caller may mutate the store while iterating
        for k in self._keys[index:]:
            words = self._entries.get(k)
            if words is not None:
                yield k, list(words)

    def find_prefix(self, prefix):
        """Return [(key, entries)] for all keys starting with ``prefix``."""
        result = []
        for key, words in self.browse_prefix(prefix):
            if not key.startswith(prefix):
                break
            result.append((key, words))
        return result

    # ─── Mutations ────────────────────────────────────────────────────

    def _writable(self, operation):
        if self.read_only:
            logger.warning(f'{self.name} is read-only; {operation} ignored')
            return False
        if not self._opened:
            logger.warning(f'{self.name} is not open; {operation} ignored')
            return False
        return True

    def _set(self, key, words):
        if words:
            if key not in self._entries:
                bisect.insort(self._keys, key)
            self._entries[key] = list(words)
        elif key in self._entries:
            del self._entries[key]
            index = bisect.bisect_left(self._keys, key)
            del self._keys[index]

    def insert(self, key, words):
        """
        Replace the entry list at ``key`` and commit.

        An empty list removes the key.

        Returns:
            bool: True if the change is durable
        """
        if not key or not self._writable('insert'):
            return False
        previous = self._entries.get(key)
        self._set(key, words)
        if self._commit():
            return True
        self._set(key, previous or [])
        return False

    def add(self, key, word, limit=None):
        """
        Put ``word`` at the front of the list at ``key``.

        An entry with the same identity is replaced (its old cost is
        discarded); other entries keep their order. ``limit`` trims the
        list from the tail.
        """
        words = [word] + [w for w in self._entries.get(key, ()) if w != word]
        if limit is not None:
            words = words[:limit]
        return self.insert(key, words)

    def remove(self, key):
        if not self._writable('remove'):
            return False
        previous = self._entries.get(key)
        if previous is None:
            return True
        self._set(key, [])
        if self._commit():
            return True
        self._set(key, previous)
        return False

    def save(self, path=None):
        """
        Write every entry to ``path`` (default: the backing file).

        Returns:
            bool: True if the file was written
        """
        if not self._opened:
            logger.warning(f'{self.name} is not open; save ignored')
            return False
        if path is None and self.read_only:
            logger.warning(f'{self.name} is read-only; save ignored')
            return False
        return self._commit(path)

    def _commit(self, path=None):
        target = path if path is not None else self.path
        if target is None:
            return True
        try:
            directory = os.path.dirname(os.path.abspath(target))
            os.makedirs(directory, exist_ok=True)
            if self._backup_pending and target == self.path:
                if os.path.exists(target):
                    backup_path = target + '.bak'
                    os.replace(target, backup_path)
                    logger.warning(f'Moved unreadable {self.name} aside to {backup_path}')
                self._backup_pending = False
            data = {key: [self._encode_word(w) for w in self._entries[key]] for key in self._keys}
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.tmp-', suffix='.json')
            try:
                with os.fdopen(fd, 'wb') as f:
                    f.write(orjson.dumps(data))
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_path, target)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
            return True
        except (OSError, TypeError) as e:
            logger.error(f'Failed to save {self.name}: {target} - {e}')
            return False

    # ─── Text Import / Export ─────────────────────────────────────────

    def export(self):
        """Return one "key\\tentry1\\tentry2..." line per key, keys ascending."""
        return ['\t'.join([key] + [self._encode_word(w) for w in self._entries[key]])
                for key in self._keys]

    def import_lines(self, lines):
        """
        Merge exported lines into the store.

        Entries with the same identity are coalesced, the last one seen
        wins. Malformed lines and entries are skipped.

        Returns:
            bool: True if the merged state was committed
        """
        if not self._writable('import'):
            return False

        merged = {}
        for line in lines:
            fields = line.rstrip('\r\n').split('\t')
            key = fields[0]
            if len(fields) < 2 or not key:
                continue
            words = self._decode_records(key, fields[1:])
            if not words:
                continue
            if key not in merged:
                merged[key] = list(self._entries.get(key, ()))
            for word in words:
                current = merged[key]
                for i, existing in enumerate(current):
                    if existing == word:
                        current[i] = word
                        break
                else:
                    current.append(word)

        if not merged:
            return True

        previous = {key: self._entries.get(key) for key in merged}
        for key, words in merged.items():
            self._set(key, words)
        if self._commit():
            logger.info(f'Imported {len(merged)} keys into {self.name}')
            return True
        for key, words in previous.items():
            self._set(key, words or [])
        return False


def open_store(path, read_only=False, keyed_by_reading=True, name='dictionary', create=True):
    """
    Open a store, falling back to an empty one when the file is
    unavailable. The fallback of a read-only store lives in memory. A
    writable fallback keeps the path without reading it again; the old
    file is moved to "<path>.bak" before the first write.

    Returns:
        tuple: (store: DictionaryStore, available: bool)
    """
    store = DictionaryStore(path, read_only=read_only, keyed_by_reading=keyed_by_reading, name=name)
    try:
        store.open(create=create)
        return store, True
    except StoreUnavailable as e:
        logger.error(f'{e} - continuing with an empty {name}')
        fallback = DictionaryStore(None if read_only else path, read_only=read_only,
                                   keyed_by_reading=keyed_by_reading, name=name)
        # Writable fallbacks move the unreadable file aside on the first write
        return fallback.open_empty(backup=not read_only), False


def convert_text_dictionary(text_path, json_path):
    """
    Convert a text dictionary into a store file.

    Text format, one reading per line:
        reading<TAB>lid,rid,cost,surface<TAB>lid,rid,cost,surface...
    Blank lines and lines starting with '#' are ignored. Repeated readings
    are merged; a repeated (lid, rid, surface) keeps the last cost.

    Args:
        text_path: Path to the UTF-8 text dictionary
        json_path: Output path of the JSON store file

    Returns:
        tuple: (success: bool, output_path: str or None, entry_count: int)
    """
    if not os.path.exists(text_path):
        logger.error(f'Text dictionary not found: {text_path}')
        return False, None, 0

    try:
        with open(text_path, 'r', encoding='utf-8') as f:
            lines = [line for line in f if line.strip() and not line.startswith('#')]
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f'Failed to read text dictionary: {text_path} - {e}')
        return False, None, 0

    store = DictionaryStore(name='system dictionary')
    store.import_lines(lines)
    entry_count = store.entry_count()
    if entry_count == 0:
        logger.error(f'No valid entries in text dictionary: {text_path}')
        return False, None, 0
    if not store.save(json_path):
        return False, None, 0

    logger.info(f'Converted {text_path} -> {json_path} ({len(store)} readings, {entry_count} entries)')
    return True, json_path, entry_count
