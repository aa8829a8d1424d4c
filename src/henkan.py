#!/usr/bin/env python3
# henkan.py - Kana to Kanji conversion (変換) processor

import logging

from config import HenkanConfig
from connection import ConnectionTable, ConnectionTableError
from dictionary import open_store
import kana
from lattice import LatticeUnreachable, build_lattice, viterbi_forward
from learning import LearningUpdater
from nbest import nbest_search
from word import Candidate, Word

logger = logging.getLogger(__name__)


class HenkanProcessor:
    """
    Processor for kana-to-kanji conversion (かな漢字変換).

    A reading is converted by building a word lattice from the learning and
    system dictionaries, scoring it with the bigram connection table
    (forward Viterbi) and enumerating the N best distinct surfaces with a
    backward priority-queue search. Optional width conversions of the
    reading are appended after the dictionary candidates.

    Confirmed candidates are fed back through record_selection(), which
    adjusts costs in the learning dictionary and records word successions
    in the prediction dictionary (used by predict_next()).

    Public methods never raise. Failures are logged and show up as fewer
    candidates (or False for write operations).

    Usage:
        >>> with HenkanProcessor.from_files(system_path, learning_path,
        ...                                 connection_path) as processor:
        ...     candidates = processor.build_candidates('きょうは')
        ...     processor.record_selection(candidates[0])
    """

    def __init__(self, system, learning, connection, prediction=None, config=None):
        """
        Args:
            system: Read-only DictionaryStore with the system dictionary
            learning: Writable DictionaryStore for learned costs
            connection: ConnectionTable, or None when it could not be loaded
                        (dictionary conversion is disabled until
                        reload_connection() succeeds)
            prediction: Writable DictionaryStore for word successions, or None
            config: HenkanConfig (defaults if None)
        """
        self.config = config if config is not None else HenkanConfig()
        self._system = system
        self._learning = learning
        self._prediction = prediction if self.config.prediction_enabled else None
        self._connection = connection
        self._updater = LearningUpdater(system, learning, self._prediction,
                                        max_predictions=self.config.max_predictions)
        if connection is None:
            logger.warning('No connection table - dictionary conversion is disabled')

    @classmethod
    def from_files(cls, system_path, learning_path, connection_path,
                   prediction_path=None, config=None):
        """
        Open all dictionaries and the connection table.

        Unavailable files do not stop construction: the affected store
        starts empty and a missing/broken connection table disables
        dictionary conversion (fallback conversions still work).
        """
        system, _ = open_store(system_path, read_only=True, name='system dictionary', create=False)
        learning, _ = open_store(learning_path, name='learning dictionary')
        prediction = None
        if prediction_path is not None:
            prediction, _ = open_store(prediction_path, keyed_by_reading=False,
                                       name='prediction dictionary')
        try:
            connection = ConnectionTable.load(connection_path)
        except ConnectionTableError as e:
            logger.error(f'{e} - dictionary conversion is disabled until the table is reloaded')
            connection = None
        return cls(system, learning, connection, prediction, config)

    def close(self):
        for store in (self._system, self._learning, self._prediction):
            if store is not None:
                store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def conversion_enabled(self):
        return self._connection is not None

    def reload_connection(self, path):
        """
        Reload the connection table from ``path``.

        Returns:
            bool: True if conversion is enabled afterwards
        """
        try:
            self._connection = ConnectionTable.load(path)
            return True
        except ConnectionTableError as e:
            logger.error(f'{e} - dictionary conversion stays disabled')
            self._connection = None
            return False

    # ─── Conversion ───────────────────────────────────────────────────

    def build_candidates(self, reading, split_pos=None):
        """
        Convert a kana reading to candidates.

        Args:
            reading: Hiragana reading (e.g., "きょうは")
            split_pos: Position of a user-chosen split (0 <= split_pos <=
                       len(reading)); no word may straddle it. None or
                       len(reading) means no split.

        Returns:
            list: Candidates, dictionary paths first in non-decreasing cost
                  order, then the enabled width conversions. No two share
                  a surface.
        """
        if not reading:
            return []
        if split_pos is None:
            split_pos = len(reading)

        candidates = self._convert(reading, split_pos)
        candidates.extend(self._fallback_candidates(reading))

        unique = []
        seen = set()
        for candidate in candidates:
            if candidate.surface in seen:
                continue
            seen.add(candidate.surface)
            unique.append(candidate)

        logger.debug(f'HenkanProcessor.build_candidates("{reading}", {split_pos}) → '
                     f'{len(unique)} candidates')
        return unique

    def _convert(self, reading, split_pos):
        if self._connection is None:
            return []
        try:
            graph = build_lattice(reading, split_pos, self._system, self._learning, self._connection)
            viterbi_forward(graph, self._connection)
            return nbest_search(graph, self._connection, reading,
                                n_best=self.config.n_best,
                                max_steps=self.config.max_search_steps)
        except LatticeUnreachable:
            logger.debug(f'HenkanProcessor: no dictionary path for "{reading}"')
            return []
        except Exception as e:
            logger.error(f'HenkanProcessor conversion failed for "{reading}": {e}')
            return []

    def _fallback_candidates(self, reading):
        fallbacks = []
        conversions = (
            (self.config.convert_wide_latin, kana.to_wide_latin),
            (self.config.convert_half_kana, kana.to_half_katakana),
            (self.config.convert_wide_katakana, kana.to_wide_katakana),
        )
        for enabled, convert in conversions:
            if not enabled:
                continue
            surface = convert(reading)
            if surface != reading:
                # Cost 0 words are never learned
                fallbacks.append(Candidate.from_words(reading, [Word(reading, 0, 0, 0, surface)]))
        return fallbacks

    # ─── Learning ─────────────────────────────────────────────────────

    def record_selection(self, candidate):
        """
        Learn from a confirmed candidate.

        Returns:
            bool: True if every learning/prediction write succeeded
        """
        if not self.config.learning_enabled:
            return True
        try:
            return self._updater.record(candidate)
        except Exception as e:
            logger.error(f'HenkanProcessor.record_selection failed for "{candidate.surface}": {e}')
            return False

    def predict_next(self, candidate):
        """Next-word suggestions after ``candidate`` (most recent first)."""
        try:
            return self._updater.predict(candidate, limit=self.config.n_best)
        except Exception as e:
            logger.error(f'HenkanProcessor.predict_next failed for "{candidate.surface}": {e}')
            return []

    # ─── Learning Dictionary Maintenance ──────────────────────────────

    def export_learning(self):
        """Learning entries as export lines (reading, then one field per entry, tab-separated)."""
        try:
            return self._learning.export()
        except Exception as e:
            logger.error(f'HenkanProcessor.export_learning failed: {e}')
            return []

    def import_learning(self, lines):
        """Merge exported lines into the learning dictionary. Returns False on failure."""
        try:
            return self._learning.import_lines(lines)
        except Exception as e:
            logger.error(f'HenkanProcessor.import_learning failed: {e}')
            return False

    def delete_learning(self, reading):
        try:
            return self._learning.remove(reading)
        except Exception as e:
            logger.error(f'HenkanProcessor.delete_learning failed for "{reading}": {e}')
            return False

    def list_learning(self, prefix=''):
        """[(reading, [Word, ...])] of learning entries whose reading starts with ``prefix``."""
        try:
            return self._learning.find_prefix(prefix)
        except Exception as e:
            logger.error(f'HenkanProcessor.list_learning failed for "{prefix}": {e}')
            return []

    def get_dictionary_stats(self):
        """
        Get statistics about loaded dictionaries.

        Returns:
            dict: Dictionary containing:
                  - 'system_readings': Number of readings in the system dictionary
                  - 'learning_readings': Number of readings in the learning dictionary
                  - 'prediction_keys': Number of prediction keys (0 if disabled)
                  - 'connection_dim': Connection table dimension (0 if not loaded)
                  - 'conversion_enabled': Whether dictionary conversion is possible
        """
        return {
            'system_readings': len(self._system),
            'learning_readings': len(self._learning),
            'prediction_keys': len(self._prediction) if self._prediction is not None else 0,
            'connection_dim': self._connection.dim if self._connection is not None else 0,
            'conversion_enabled': self.conversion_enabled,
        }
