#!/usr/bin/env python3
# nbest.py - N-best path enumeration over a Viterbi-scored lattice
#
# Backward A* search: queue priority = cost_from_start (exact, from the
# forward pass) + cost_to_goal (accumulated while walking back from EOS).
# Because cost_from_start is exact, complete paths come off the queue in
# non-decreasing total cost.

import heapq
import itertools
import logging

from lattice import INFINITY
from word import Candidate

logger = logging.getLogger(__name__)

DEFAULT_N_BEST = 20
DEFAULT_MAX_STEPS = 10000


def _path_words(bos):
    """Words from the node after BOS up to (excluding) EOS, via next pointers."""
    words = []
    node = bos.next
    while node is not None and node.next is not None:
        words.append(node.word)
        node = node.next
    return words


def nbest_search(graph, connection, reading, n_best=DEFAULT_N_BEST, max_steps=DEFAULT_MAX_STEPS):
    """
    Enumerate up to ``n_best`` candidates with distinct surfaces.

    The lattice nodes are only read; every queue entry is a copy carrying
    its own next/cost_to_goal/prio, so one lattice node can sit on many
    paths at once.

    Args:
        graph: Lattice buckets after viterbi_forward()
        connection: ConnectionTable
        reading: The reading the lattice was built from
        n_best: Maximum number of candidates
        max_steps: Maximum number of queue pops

    Returns:
        list: Candidates in non-decreasing cost order
    """
    eos = graph[-1][0]
    if eos.cost_from_start == INFINITY or n_best <= 0:
        return []

    # Ties on prio are broken by push order
    counter = itertools.count()
    start = eos.copy()
    start.cost_to_goal = 0
    start.next = None
    start.prio = start.cost_from_start
    queue = [(start.prio, next(counter), start)]

    candidates = []
    seen_surfaces = set()
    steps = 0

    while queue and len(candidates) < n_best:
        if steps >= max_steps:
            logger.warning(f'nbest_search("{reading}") stopped after {steps} steps '
                           f'with {len(candidates)} candidates')
            break
        steps += 1

        _, _, cur = heapq.heappop(queue)

        if cur.is_bos:
            words = _path_words(cur)
            surface = ''.join(w.surface for w in words)
            if surface not in seen_surfaces:
                seen_surfaces.add(surface)
                candidates.append(Candidate(reading, surface, words, cur.prio))
            continue

        step_cost = cur.cost_to_goal + cur.word.cost
        for prev in graph[cur.start_pos - 1]:
            if prev.cost_from_start == INFINITY:
                continue
            node = prev.copy()
            node.cost_to_goal = step_cost + connection.edge_cost(node.word, cur.word)
            node.next = cur
            node.prio = node.cost_from_start + node.cost_to_goal
            heapq.heappush(queue, (node.prio, next(counter), node))

    logger.debug(f'nbest_search("{reading}"): {len(candidates)} candidates in {steps} steps')
    return candidates
