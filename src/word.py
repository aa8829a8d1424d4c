#!/usr/bin/env python3
# word.py - Dictionary entry (Word) and conversion result (Candidate) value types

from dataclasses import dataclass, field, replace

# Connection ids are unsigned 16-bit, costs are signed 16-bit
ID_MIN, ID_MAX = 0, 0xFFFF
COST_MIN, COST_MAX = -0x8000, 0x7FFF


class MalformedEntry(ValueError):
    """Raised when a stored entry record cannot be decoded."""


@dataclass(frozen=True)
class Word:
    """
    An entry in a dictionary.

    Identity is (reading, lid, rid, surface). The cost is deliberately left
    out of equality and hashing so that the learning dictionary can carry a
    different cost for the same word.

    Attributes:
        reading: Hiragana lookup key (empty for the BOS/EOS sentinels)
        lid: Left connection class id
        rid: Right connection class id
        cost: Word-internal cost (lower = more likely)
        surface: Display form
    """
    reading: str
    lid: int
    rid: int
    cost: int = field(compare=False)
    surface: str

    @property
    def identity(self):
        return (self.reading, self.lid, self.rid, self.surface)

    def with_cost(self, cost):
        """Return a copy of this word carrying a different cost."""
        return replace(self, cost=cost)


# The BOS/EOS word: class 0, cost 0, no reading or surface
SENTINEL = Word('', 0, 0, 0, '')


@dataclass
class Candidate:
    """
    A conversion result shown to the user.

    Attributes:
        reading: The full input reading
        surface: Concatenated surfaces of ``words``
        words: Words along the chosen path (copies, safe to keep)
        cost: Total path cost, or None for fallback conversions
    """
    reading: str
    surface: str
    words: list = field(default_factory=list)
    cost: object = None

    @classmethod
    def from_words(cls, reading, words, cost=None):
        words = list(words)
        return cls(reading, ''.join(w.surface for w in words), words, cost)


# ─── Entry Text Codec ─────────────────────────────────────────────────
#
# Dictionary values:      "lid,rid,cost,surface"
# Prediction successors:  "reading,lid,rid,cost,surface"
#
# The surface is always the last field, so it may itself contain commas.

def _parse_int(text, low, high, name, record):
    try:
        value = int(text)
    except ValueError:
        raise MalformedEntry(f'{name} is not an integer in entry {record!r}')
    if not low <= value <= high:
        raise MalformedEntry(f'{name}={value} out of range in entry {record!r}')
    return value


def decode_entry(reading, record):
    """
    Decode a "lid,rid,cost,surface" record stored under ``reading``.

    Raises:
        MalformedEntry: if the record does not have four fields, the
                        numbers are not valid, or the surface is empty
    """
    if not isinstance(record, str):
        raise MalformedEntry(f'entry is not a string: {record!r}')
    parts = record.split(',', 3)
    if len(parts) != 4:
        raise MalformedEntry(f'expected 4 fields in entry {record!r}')
    lid = _parse_int(parts[0], ID_MIN, ID_MAX, 'lid', record)
    rid = _parse_int(parts[1], ID_MIN, ID_MAX, 'rid', record)
    cost = _parse_int(parts[2], COST_MIN, COST_MAX, 'cost', record)
    if not parts[3]:
        raise MalformedEntry(f'empty surface in entry {record!r}')
    return Word(reading, lid, rid, cost, parts[3])


def encode_entry(word):
    return f'{word.lid},{word.rid},{word.cost},{word.surface}'


def decode_successor(record):
    """Decode a "reading,lid,rid,cost,surface" prediction record."""
    if not isinstance(record, str):
        raise MalformedEntry(f'entry is not a string: {record!r}')
    reading, sep, rest = record.partition(',')
    if not sep or not reading:
        raise MalformedEntry(f'missing reading in entry {record!r}')
    return decode_entry(reading, rest)


def encode_successor(word):
    return f'{word.reading},{encode_entry(word)}'


def prediction_key(word):
    """Key under which the successors of ``word`` are stored."""
    return f'{word.reading},{word.lid},{word.rid},{word.surface}'
