#!/usr/bin/env python3
# lattice.py - Word lattice (単語ラティス) construction and forward Viterbi

import logging
import math

from word import SENTINEL

logger = logging.getLogger(__name__)

INFINITY = math.inf


class LatticeUnreachable(Exception):
    """Raised when no path connects BOS to EOS."""


class Node:
    """
    A word placed in the lattice.

    start_pos is 1-based: BOS has 0 and EOS has len(reading) + 1. A node in
    bucket e covers reading[start_pos - 1:e].

    prev/cost_from_start are written by viterbi_forward(). next/cost_to_goal/
    prio belong to the backward search, which only ever sets them on copies.
    """

    __slots__ = ('start_pos', 'end_pos', 'word', 'cost_from_start', 'prev',
                 'cost_to_goal', 'next', 'prio')

    def __init__(self, start_pos, end_pos, word):
        self.start_pos = start_pos
        self.end_pos = end_pos
        self.word = word
        self.cost_from_start = INFINITY
        self.prev = None
        self.cost_to_goal = 0
        self.next = None
        self.prio = 0

    def copy(self):
        node = Node(self.start_pos, self.end_pos, self.word)
        node.cost_from_start = self.cost_from_start
        node.prev = self.prev
        node.cost_to_goal = self.cost_to_goal
        node.next = self.next
        node.prio = self.prio
        return node

    @property
    def is_bos(self):
        return self.start_pos == 0

    def __repr__(self):
        return (f'Node(start_pos={self.start_pos}, end_pos={self.end_pos}, '
                f'surface={self.word.surface!r}, cost_from_start={self.cost_from_start}, '
                f'cost_to_goal={self.cost_to_goal}, prio={self.prio})')


def merge_entries(learning_words, system_words):
    """
    Union of learning and system entries for one reading.

    Duplicates are detected by (lid, rid, surface); the learning entry
    shadows the system one. Learning entries come first, then system
    entries in their stored order.
    """
    merged = []
    seen = set()
    for word in list(learning_words) + list(system_words):
        key = (word.lid, word.rid, word.surface)
        if key in seen:
            continue
        seen.add(key)
        merged.append(word)
    return merged


def lookup_entries(reading, system, learning):
    """Entries for ``reading`` from both dictionaries (learning shadows system)."""
    learning_words = learning.find(reading) if learning is not None else []
    system_words = system.find(reading) if system is not None else []
    return merge_entries(learning_words, system_words)


def is_split_crossed(start_pos, end_pos, split_pos, length):
    """True if a span [start_pos, end_pos] straddles the user's split."""
    if split_pos >= length:
        return False
    return start_pos <= split_pos < end_pos


def build_lattice(reading, split_pos, system, learning, connection=None):
    """
    Build the lattice buckets for ``reading``.

    Args:
        reading: Hiragana reading (non-empty)
        split_pos: 0 <= split_pos <= len(reading); len(reading) means no split.
                   Values outside that range are treated as no split.
        system: System DictionaryStore (may be None)
        learning: Learning DictionaryStore (may be None)
        connection: ConnectionTable used to reject entries whose ids it
                    cannot index. None skips the check.

    Returns:
        list: graph[e] = nodes ending at e, for e in 0..len(reading)+1.
              graph[0] holds BOS (cost_from_start 0), graph[len+1] holds EOS.
    """
    length = len(reading)
    if not 0 <= split_pos <= length:
        split_pos = length

    graph = [[] for _ in range(length + 2)]

    bos = Node(0, 0, SENTINEL)
    bos.cost_from_start = 0
    graph[0].append(bos)
    graph[length + 1].append(Node(length + 1, length + 1, SENTINEL))

    for start_pos in range(1, length + 1):
        for end_pos in range(start_pos, length + 1):
            if is_split_crossed(start_pos, end_pos, split_pos, length):
                continue
            sub = reading[start_pos - 1:end_pos]
            for word in lookup_entries(sub, system, learning):
                if connection is not None and not connection.contains(word):
                    logger.warning(f'Dropping {word.surface!r} ({sub}): connection id '
                                   f'lid={word.lid}/rid={word.rid} outside dim={connection.dim}')
                    continue
                graph[end_pos].append(Node(start_pos, end_pos, word))

    logger.debug(f'build_lattice("{reading}", {split_pos}): '
                 f'{sum(len(b) for b in graph) - 2} word nodes')
    return graph


def viterbi_forward(graph, connection):
    """
    Forward DP: minimum cost from BOS to every node.

    Sets cost_from_start and prev on every node of graph[1:].

    Returns:
        The best total path cost (cost_from_start of EOS)

    Raises:
        LatticeUnreachable: if EOS cannot be reached from BOS
    """
    for end_pos in range(1, len(graph)):
        for node in graph[end_pos]:
            node.cost_from_start = INFINITY
            node.prev = None
            for prev in graph[node.start_pos - 1]:
                if prev.cost_from_start == INFINITY:
                    continue
                cost = (prev.cost_from_start
                        + connection.edge_cost(prev.word, node.word)
                        + node.word.cost)
                if cost < node.cost_from_start:
                    node.cost_from_start = cost
                    node.prev = prev

    eos = graph[-1][0]
    if eos.cost_from_start == INFINITY:
        raise LatticeUnreachable('EOS is not reachable from BOS')
    return eos.cost_from_start


def best_path(graph):
    """Words along the Viterbi path (after viterbi_forward), BOS/EOS excluded."""
    words = []
    node = graph[-1][0].prev
    while node is not None and not node.is_bos:
        words.append(node.word)
        node = node.prev
    words.reverse()
    return words
