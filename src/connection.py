#!/usr/bin/env python3
# connection.py - Bigram connection cost table (連接コスト表)

import logging
import os
import struct

logger = logging.getLogger(__name__)

# Binary layout: ">H" dim, then dim*dim ">h" cells in row-major order,
# indexed table[rid * dim + lid]
HEADER_FORMAT = '>H'
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)
CELL_SIZE = 2


class ConnectionTableError(ValueError):
    """Raised when a connection table file cannot be loaded."""


class ConnectionOutOfRange(IndexError):
    """Raised when a connection class id is not below the table dimension."""


class ConnectionTable:
    """
    Square matrix of transition costs between adjacent words.

    ``edge_cost(left, right)`` reads the cell at ``left.rid * dim + right.lid``,
    i.e. the right class of the preceding word selects the row and the left
    class of the following word selects the column.
    """

    def __init__(self, dim, cells):
        if dim <= 0:
            raise ConnectionTableError(f'Connection table dimension must be positive (got {dim})')
        if len(cells) != dim * dim:
            raise ConnectionTableError(
                f'Connection table needs {dim * dim} cells for dim={dim}, got {len(cells)}')
        self.dim = dim
        self._cells = tuple(cells)

    @classmethod
    def from_rows(cls, rows):
        """Build a table from a list of rows (rows[rid][lid])."""
        dim = len(rows)
        cells = []
        for row in rows:
            if len(row) != dim:
                raise ConnectionTableError('Connection table rows must form a square matrix')
            cells.extend(row)
        return cls(dim, cells)

    @classmethod
    def from_bytes(cls, data):
        if len(data) < HEADER_SIZE:
            raise ConnectionTableError('Connection table is empty')
        (dim,) = struct.unpack_from(HEADER_FORMAT, data, 0)
        expected = HEADER_SIZE + dim * dim * CELL_SIZE
        if len(data) != expected:
            raise ConnectionTableError(
                f'Connection table size mismatch: dim={dim} needs {expected} bytes, got {len(data)}')
        cells = struct.unpack_from(f'>{dim * dim}h', data, HEADER_SIZE)
        return cls(dim, cells)

    @classmethod
    def load(cls, path):
        """
        Load a table from its binary file.

        Raises:
            ConnectionTableError: if the file is missing, unreadable or malformed
        """
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as e:
            raise ConnectionTableError(f'Failed to read connection table {path}: {e}') from e
        table = cls.from_bytes(data)
        logger.info(f'Loaded connection table: {path} (dim={table.dim})')
        return table

    def to_bytes(self):
        n = self.dim * self.dim
        return struct.pack(HEADER_FORMAT, self.dim) + struct.pack(f'>{n}h', *self._cells)

    def save(self, path):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'wb') as f:
            f.write(self.to_bytes())
        logger.info(f'Saved connection table: {path} (dim={self.dim})')

    def contains(self, word):
        """True if both connection ids of ``word`` index into this table."""
        return 0 <= word.lid < self.dim and 0 <= word.rid < self.dim

    def cost(self, rid, lid):
        if not (0 <= rid < self.dim and 0 <= lid < self.dim):
            raise ConnectionOutOfRange(f'rid={rid}, lid={lid} not below dim={self.dim}')
        return self._cells[rid * self.dim + lid]

    def edge_cost(self, left, right):
        """Cost of ``right`` following ``left`` (both Words)."""
        return self.cost(left.rid, right.lid)


def convert_matrix_def(matrix_path, output_path):
    """
    Convert a MeCab-style matrix.def into a binary connection table.

    matrix.def format:
        first line:  "<right_size> <left_size>"  (must be equal here)
        other lines: "<rid> <lid> <cost>"
    Cells not listed in the file are 0.

    Args:
        matrix_path: Path to the matrix.def text file
        output_path: Path of the binary table to write

    Returns:
        tuple: (success: bool, output_path: str or None, dim: int)
    """
    if not os.path.exists(matrix_path):
        logger.error(f'matrix.def not found: {matrix_path}')
        return False, None, 0

    try:
        with open(matrix_path, 'r', encoding='utf-8') as f:
            header = f.readline().split()
            if len(header) != 2:
                logger.error(f'Invalid matrix.def header in {matrix_path}: {header}')
                return False, None, 0
            right_size, left_size = int(header[0]), int(header[1])
            if right_size != left_size:
                logger.error(f'Non-square matrix.def is not supported: {right_size}x{left_size}')
                return False, None, 0
            dim = right_size
            cells = [0] * (dim * dim)
            for line_number, line in enumerate(f, start=2):
                fields = line.split()
                if not fields:
                    continue
                if len(fields) != 3:
                    logger.warning(f'Skipping malformed line {line_number} in {matrix_path}')
                    continue
                rid, lid, cost = (int(x) for x in fields)
                if not (0 <= rid < dim and 0 <= lid < dim):
                    logger.warning(f'Skipping out-of-range cell ({rid}, {lid}) at line {line_number}')
                    continue
                cells[rid * dim + lid] = max(-0x8000, min(0x7FFF, cost))

        table = ConnectionTable(dim, cells)
        table.save(output_path)
        return True, output_path, dim

    except (OSError, ValueError) as e:
        logger.error(f'Failed to convert matrix.def: {matrix_path} - {e}')
        return False, None, 0
