#!/usr/bin/env python3
# tests/test_dictionary.py - Unit tests for dictionary.py

import pytest
import json
import os
import sys
from unittest.mock import patch

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from dictionary import (
    DictionaryStore,
    StoreUnavailable,
    convert_text_dictionary,
    open_store,
)
from word import Word


def read_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


class TestDictionaryStoreOpen:
    """Test suite for loading store files"""

    def test_find(self, system_store):
        """Test that entries come back in stored order with the key as reading"""
        words = system_store.find('きょう')
        assert [w.surface for w in words] == ['今日', '京']
        assert all(w.reading == 'きょう' for w in words)
        assert [w.cost for w in words] == [100, 300]

    def test_find_missing_key(self, system_store):
        """Test that a missing key returns an empty list"""
        assert system_store.find('ないよ') == []

    def test_find_is_deterministic(self, system_store):
        """Test that repeated lookups return the same order"""
        assert system_store.find('は') == system_store.find('は')

    def test_malformed_entry_dropped(self, temp_dir):
        """Test that a malformed entry is dropped and its neighbours kept"""
        path = os.path.join(temp_dir, 'dict.json')
        with open(path, 'w', encoding='utf-8') as f:
            json.dump({"きょう": ["1,1,100,今日", "garbage", "1,1,300,京"],
                       "だめ": "not a list"}, f, ensure_ascii=False)

        store = DictionaryStore(path).open()

        assert [w.surface for w in store.find('きょう')] == ['今日', '京']
        assert 'だめ' not in store

    def test_missing_file_creates_empty_store(self, temp_dir):
        """Test that a missing learning file starts an empty store"""
        store = DictionaryStore(os.path.join(temp_dir, 'learning.json')).open()
        assert len(store) == 0
        assert store.is_open

    def test_missing_file_without_create(self, temp_dir):
        """Test that a missing system dictionary raises StoreUnavailable"""
        store = DictionaryStore(os.path.join(temp_dir, 'system.json'), read_only=True)
        with pytest.raises(StoreUnavailable):
            store.open(create=False)

    def test_broken_json(self, temp_dir):
        """Test that an unparsable file raises StoreUnavailable"""
        path = os.path.join(temp_dir, 'dict.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write('{broken')
        with pytest.raises(StoreUnavailable):
            DictionaryStore(path).open()

    def test_not_an_object(self, temp_dir):
        """Test that a JSON list raises StoreUnavailable"""
        path = os.path.join(temp_dir, 'dict.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write('[]')
        with pytest.raises(StoreUnavailable):
            DictionaryStore(path).open()

    def test_open_store_falls_back_to_empty(self, temp_dir):
        """Test that open_store never raises and reports unavailability"""
        path = os.path.join(temp_dir, 'dict.json')
        with open(path, 'w', encoding='utf-8') as f:
            f.write('{broken')

        store, available = open_store(path, read_only=True, name='system dictionary')

        assert available is False
        assert len(store) == 0
        assert store.find('きょう') == []

    def test_open_store_keeps_corrupt_learning_file(self, temp_dir):
        """Test that a writable fallback moves the unreadable file aside on its first write"""
        path = os.path.join(temp_dir, 'learning.json')
        broken = '{"きょう": ["1,1,5,今日"], '
        with open(path, 'w', encoding='utf-8') as f:
            f.write(broken)

        store, available = open_store(path, name='learning dictionary')

        assert available is False
        assert store.is_open
        assert len(store) == 0
        with open(path, 'r', encoding='utf-8') as f:
            assert f.read() == broken

        assert store.insert('わたし', [Word('わたし', 1, 1, 200, '私')]) is True
        with open(path + '.bak', 'r', encoding='utf-8') as f:
            assert f.read() == broken
        assert read_json(path) == {"わたし": ["1,1,200,私"]}

        # Only the first write moves the file aside
        store.insert('は', [Word('は', 2, 2, 0, 'は')])
        with open(path + '.bak', 'r', encoding='utf-8') as f:
            assert f.read() == broken

    def test_close_releases_entries(self, system_store):
        """Test that close() empties the store"""
        system_store.close()
        assert not system_store.is_open
        assert system_store.find('きょう') == []


class TestDictionaryStoreMutation:
    """Test suite for insert/add/remove with durable commits"""

    def test_insert_is_durable(self, learning_store):
        """Test that insert writes the file before returning"""
        word = Word('きょう', 1, 1, 50, '今日')
        assert learning_store.insert('きょう', [word]) is True

        data = read_json(learning_store.path)
        assert data == {"きょう": ["1,1,50,今日"]}

        reopened = DictionaryStore(learning_store.path).open()
        assert reopened.find('きょう') == [word]
        assert reopened.find('きょう')[0].cost == 50

    def test_insert_replaces_list(self, learning_store):
        """Test that insert replaces the whole entry list"""
        learning_store.insert('きょう', [Word('きょう', 1, 1, 50, '今日')])
        learning_store.insert('きょう', [Word('きょう', 1, 1, 70, '京')])
        assert [w.surface for w in learning_store.find('きょう')] == ['京']

    def test_add_moves_to_front(self, learning_store):
        """Test that add puts the word first and replaces the same identity"""
        learning_store.add('きょう', Word('きょう', 1, 1, 300, '京'))
        learning_store.add('きょう', Word('きょう', 1, 1, 100, '今日'))
        learning_store.add('きょう', Word('きょう', 1, 1, 250, '京'))

        words = learning_store.find('きょう')
        assert [w.surface for w in words] == ['京', '今日']
        assert words[0].cost == 250

    def test_add_with_limit(self, learning_store):
        """Test that add trims the list from the tail"""
        for i, surface in enumerate(['一', '二', '三']):
            learning_store.add('かず', Word('かず', 1, 1, i, surface), limit=2)
        assert [w.surface for w in learning_store.find('かず')] == ['三', '二']

    def test_remove(self, learning_store):
        """Test that remove deletes the key durably"""
        learning_store.insert('きょう', [Word('きょう', 1, 1, 50, '今日')])
        assert learning_store.remove('きょう') is True
        assert 'きょう' not in learning_store
        assert read_json(learning_store.path) == {}

    def test_remove_missing_key(self, learning_store):
        """Test that removing an unknown key is a successful no-op"""
        assert learning_store.remove('ないよ') is True

    def test_read_only_store_rejects_writes(self, system_store):
        """Test that the system dictionary cannot be modified"""
        assert system_store.insert('きょう', []) is False
        assert system_store.remove('きょう') is False
        assert system_store.import_lines(['あ\t1,1,1,亜']) is False
        assert len(system_store.find('きょう')) == 2

    def test_write_failure_rolls_back(self, learning_store):
        """Test that a failed commit leaves the in-memory state unchanged"""
        learning_store.insert('きょう', [Word('きょう', 1, 1, 50, '今日')])
        with patch('dictionary.os.replace', side_effect=OSError('disk full')):
            assert learning_store.insert('きょう', [Word('きょう', 1, 1, 70, '京')]) is False
            assert learning_store.remove('きょう') is False
        assert [w.surface for w in learning_store.find('きょう')] == ['今日']
        assert read_json(learning_store.path) == {"きょう": ["1,1,50,今日"]}
        assert not [name for name in os.listdir(os.path.dirname(learning_store.path))
                    if name.startswith('.tmp-')]

    def test_save_to_other_path(self, system_store, temp_dir):
        """Test that save() with a path writes a copy, even of a read-only store"""
        copy_path = os.path.join(temp_dir, 'copy.json')
        assert system_store.save(copy_path) is True
        assert read_json(copy_path)["きょう"] == ["1,1,100,今日", "1,1,300,京"]

    def test_save_read_only_in_place(self, system_store):
        """Test that a read-only store refuses to rewrite its own file"""
        assert system_store.save() is False

    def test_save_closed_store(self, learning_store):
        """Test that a closed store is not saved"""
        learning_store.close()
        assert learning_store.save() is False

    def test_in_memory_store(self):
        """Test that a store without a path works in memory"""
        store = DictionaryStore()
        assert store.insert('あ', [Word('あ', 1, 1, 1, '亜')]) is True
        assert len(store) == 1


class TestBrowsePrefix:
    """Test suite for ordered browsing"""

    @pytest.fixture
    def store(self):
        store = DictionaryStore()
        for key in ['かん', 'か', 'かんじ', 'き', 'あ']:
            store.insert(key, [Word(key, 1, 1, 0, key.upper())])
        return store

    def test_browse_ascending_from_key(self, store):
        """Test that browse yields every key >= the query, ascending"""
        keys = [key for key, _ in store.browse_prefix('か')]
        assert keys == ['か', 'かん', 'かんじ', 'き']

    def test_caller_stops_at_prefix_end(self, store):
        """Test find_prefix stops once keys stop matching"""
        assert [key for key, _ in store.find_prefix('かん')] == ['かん', 'かんじ']

    def test_empty_prefix_lists_everything(self, store):
        """Test that an empty prefix lists all keys in order"""
        assert [key for key, _ in store.find_prefix('')] == ['あ', 'か', 'かん', 'かんじ', 'き']

    def test_browse_survives_mutation(self, store):
        """Test that removing keys while browsing does not break iteration"""
        seen = []
        for key, _ in store.browse_prefix('か'):
            seen.append(key)
            store.remove('かんじ')
        assert seen == ['か', 'かん', 'き']


class TestImportExport:
    """Test suite for text export and import"""

    def test_export_format(self, system_store):
        """Test that export emits key<TAB>entries lines in key order"""
        lines = system_store.export()
        assert 'きょう\t1,1,100,今日\t1,1,300,京' in lines
        assert lines == sorted(lines, key=lambda line: line.split('\t', 1)[0])

    def test_import_coalesces_last_cost_wins(self, learning_store):
        """Test that duplicates by identity keep the last seen cost"""
        learning_store.import_lines([
            'きょう\t1,1,100,今日\t1,1,300,京',
            'きょう\t1,1,50,今日',
        ])
        words = learning_store.find('きょう')
        assert [(w.surface, w.cost) for w in words] == [('今日', 50), ('京', 300)]

    def test_import_skips_malformed(self, learning_store):
        """Test that malformed lines and entries are skipped"""
        learning_store.import_lines([
            'no entries here',
            '\t1,1,1,空',
            'きょう\tgarbage\t1,1,100,今日',
        ])
        assert learning_store.export() == ['きょう\t1,1,100,今日']

    def test_round_trip(self, learning_store, temp_dir):
        """Test that export then import into a fresh store preserves entries"""
        learning_store.insert('きょう', [Word('きょう', 1, 1, 100, '今日'), Word('きょう', 1, 1, 300, '京')])
        learning_store.insert('は', [Word('は', 2, 2, 0, 'は')])

        other = DictionaryStore(os.path.join(temp_dir, 'other.json')).open()
        other.import_lines(learning_store.export())

        assert other.export() == learning_store.export()

    def test_prediction_store_export(self, prediction_store):
        """Test that prediction records carry the successor reading"""
        prediction_store.add('わたし,1,1,私', Word('は', 2, 2, 0, 'は'))
        assert prediction_store.export() == ['わたし,1,1,私\tは,2,2,0,は']


class TestConvertTextDictionary:
    """Test suite for convert_text_dictionary() function"""

    def test_convert_simple_file(self, temp_dir):
        """Test converting a small text dictionary"""
        text_path = os.path.join(temp_dir, 'system.txt')
        with open(text_path, 'w', encoding='utf-8') as f:
            f.write("# test dictionary\n"
                    "きょう\t1,1,100,今日\t1,1,300,京\n"
                    "\n"
                    "は\t2,2,0,は\n"
                    "きょう\t1,1,120,今日\n")
        json_path = os.path.join(temp_dir, 'system.json')

        success, output_path, entry_count = convert_text_dictionary(text_path, json_path)

        assert success is True
        assert output_path == json_path
        assert entry_count == 3
        assert read_json(json_path) == {
            "きょう": ["1,1,120,今日", "1,1,300,京"],
            "は": ["2,2,0,は"],
        }

    def test_empty_file(self, temp_dir):
        """Test that an empty file writes nothing"""
        text_path = os.path.join(temp_dir, 'empty.txt')
        open(text_path, 'w').close()
        json_path = os.path.join(temp_dir, 'system.json')

        success, output_path, entry_count = convert_text_dictionary(text_path, json_path)

        assert success is False
        assert output_path is None
        assert entry_count == 0
        assert not os.path.exists(json_path)

    def test_malformed_input_keeps_existing_output(self, temp_dir):
        """Test that an input without valid entries leaves the old dictionary alone"""
        json_path = os.path.join(temp_dir, 'system.json')
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump({"は": ["2,2,0,は"]}, f, ensure_ascii=False)
        text_path = os.path.join(temp_dir, 'broken.txt')
        with open(text_path, 'w', encoding='utf-8') as f:
            f.write("きょう\tgarbage\nno tab here\n")

        success, _, _ = convert_text_dictionary(text_path, json_path)

        assert success is False
        assert read_json(json_path) == {"は": ["2,2,0,は"]}

    def test_replaces_existing_output(self, temp_dir):
        """Test that a valid input replaces the previous dictionary"""
        json_path = os.path.join(temp_dir, 'system.json')
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump({"は": ["2,2,0,は"]}, f, ensure_ascii=False)
        text_path = os.path.join(temp_dir, 'system.txt')
        with open(text_path, 'w', encoding='utf-8') as f:
            f.write("きょう\t1,1,100,今日\n")

        success, _, entry_count = convert_text_dictionary(text_path, json_path)

        assert success is True
        assert entry_count == 1
        assert read_json(json_path) == {"きょう": ["1,1,100,今日"]}

    def test_nonexistent_file(self, temp_dir):
        """Test handling of non-existent input file"""
        success, output_path, entry_count = convert_text_dictionary(
            '/nonexistent/system.txt', os.path.join(temp_dir, 'system.json'))
        assert success is False
        assert output_path is None
        assert entry_count == 0
