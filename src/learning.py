#!/usr/bin/env python3
# learning.py - Learning from confirmed candidates (学習) and next-word prediction

import logging

from lattice import lookup_entries
from word import Candidate, prediction_key

logger = logging.getLogger(__name__)


class LearningUpdater:
    """
    Applies a confirmed Candidate to the learning and prediction stores.

    Cost adjustment swaps costs inside a POS class: when the user picks a
    word that was not the cheapest entry with its reading and (lid, rid),
    the picked word takes over the lowest cost and the former favourite
    takes the picked word's old cost. Both are written to the learning
    dictionary, which shadows the system dictionary on the next lookup.

    Prediction records, for every adjacent word pair, the right word as the
    most recent successor of the left word.
    """

    def __init__(self, system, learning, prediction=None, max_predictions=20):
        self.system = system
        self.learning = learning
        self.prediction = prediction
        self.max_predictions = max_predictions

    def record(self, candidate):
        """Learn from ``candidate``. Returns False if any store write failed."""
        ok = self.adjust_costs(candidate.words)
        if self.prediction is not None:
            ok = self.add_prediction_pairs(candidate.words) and ok
        return ok

    def adjust_costs(self, words):
        ok = True
        for word in words:
            if not word.reading:
                continue
            same_class = [w for w in lookup_entries(word.reading, self.system, self.learning)
                          if w.lid == word.lid and w.rid == word.rid]
            best = min(same_class, key=lambda w: w.cost, default=None)

            if best is not None and best.cost < word.cost:
                logger.debug(f'Learning {word.reading}: {word.surface} {word.cost}->{best.cost}, '
                             f'{best.surface} {best.cost}->{word.cost}')
                ok = self.learning.add(word.reading, best.with_cost(word.cost)) and ok
                ok = self.learning.add(word.reading, word.with_cost(best.cost)) and ok
            elif word.cost != 0:
                # Already the cheapest; cost 0 words (particles) are not learned
                ok = self.learning.add(word.reading, word) and ok
        return ok

    def add_prediction_pairs(self, words):
        ok = True
        for left, right in zip(words, words[1:]):
            if ',' in left.reading or ',' in right.reading:
                logger.debug(f'Skipping prediction pair with comma in reading: '
                             f'{left.reading!r}, {right.reading!r}')
                continue
            if not left.reading or not right.reading:
                continue
            ok = self.prediction.add(prediction_key(left), right, limit=self.max_predictions) and ok
        return ok

    def predict(self, candidate, limit=None):
        """
        Successors recorded after the last word of ``candidate``, most recent
        first, each as a single-word Candidate.
        """
        if self.prediction is None or not candidate.words:
            return []
        last = candidate.words[-1]
        if ',' in last.reading:
            return []
        successors = self.prediction.find(prediction_key(last))
        if limit is not None:
            successors = successors[:limit]
        return [Candidate(w.reading, w.surface, [w]) for w in successors]
