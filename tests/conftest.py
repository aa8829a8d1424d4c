# tests/conftest.py - Shared fixtures: a small dictionary, connection table and processor

import json
import os
import shutil
import sys
import tempfile

import pytest

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from config import HenkanConfig
from connection import ConnectionTable
from dictionary import DictionaryStore
from henkan import HenkanProcessor
from word import SENTINEL

# Connection classes: 0 = BOS/EOS, 1 = noun, 2 = particle
NOUN = 1
PARTICLE = 2

# rows[rid][lid]: cost of a word with left class lid following right class rid
CONNECTION_ROWS = [
    [0, 10, 50],     # after BOS
    [10, 100, 0],    # after a noun
    [10, 20, 200],   # after a particle
]

SYSTEM_ENTRIES = {
    "きょう": ["1,1,100,今日", "1,1,300,京"],
    "きょ": ["1,1,400,居"],
    "う": ["1,1,500,鵜"],
    "うは": ["1,1,450,右派"],
    "は": ["2,2,0,は", "1,1,600,歯"],
    "わたし": ["1,1,200,私"],
    "わた": ["1,1,300,綿"],
    "し": ["1,1,400,死"],
    "てんき": ["1,1,150,天気", "1,1,350,転機"],
}


def path_cost(words, connection):
    """Total cost of a word sequence between BOS and EOS."""
    total = 0
    left = SENTINEL
    for word in list(words) + [SENTINEL]:
        total += connection.edge_cost(left, word) + word.cost
        left = word
    return total


def write_json(path, data):
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def connection():
    return ConnectionTable.from_rows(CONNECTION_ROWS)


@pytest.fixture
def connection_path(temp_dir, connection):
    path = os.path.join(temp_dir, 'connection.bin')
    connection.save(path)
    return path


@pytest.fixture
def system_path(temp_dir):
    path = os.path.join(temp_dir, 'system_dictionary.json')
    write_json(path, SYSTEM_ENTRIES)
    return path


@pytest.fixture
def system_store(system_path):
    return DictionaryStore(system_path, read_only=True, name='system dictionary').open(create=False)


@pytest.fixture
def learning_store(temp_dir):
    path = os.path.join(temp_dir, 'learning_dictionary.json')
    return DictionaryStore(path, name='learning dictionary').open()


@pytest.fixture
def prediction_store(temp_dir):
    path = os.path.join(temp_dir, 'prediction_dictionary.json')
    return DictionaryStore(path, keyed_by_reading=False, name='prediction dictionary').open()


@pytest.fixture
def make_processor(temp_dir, system_path, connection_path):
    """Factory creating a HenkanProcessor over the temp dir files with config overrides."""
    processors = []

    def _make(**overrides):
        config = HenkanConfig.from_dict(overrides)
        processor = HenkanProcessor.from_files(
            system_path,
            os.path.join(temp_dir, 'learning_dictionary.json'),
            connection_path,
            prediction_path=os.path.join(temp_dir, 'prediction_dictionary.json'),
            config=config,
        )
        processors.append(processor)
        return processor

    yield _make
    for processor in processors:
        processor.close()


@pytest.fixture
def processor(make_processor):
    return make_processor()
