#!/usr/bin/env python3
# config.py - Conversion settings and their defaults

import copy
import logging

logger = logging.getLogger(__name__)

# Default content of config.json. The type of each value is also the type
# that util.get_config_data() enforces for the user's file.
DEFAULT_CONFIG = {
    "convert_half_kana": False,
    "convert_wide_latin": False,
    "convert_wide_katakana": False,
    "n_best": 20,
    "max_search_steps": 10000,
    "learning_enabled": True,
    "prediction_enabled": True,
    "max_predictions": 20,
    "system_dictionary": "system_dictionary.json",
    "learning_dictionary": "learning_dictionary.json",
    "prediction_dictionary": "prediction_dictionary.json",
    "connection_table": "connection.bin",
    "logging_level": "WARNING",
}

# Integer settings that must be at least 1
_POSITIVE_KEYS = ('n_best', 'max_search_steps', 'max_predictions')


def get_default_config():
    return copy.deepcopy(DEFAULT_CONFIG)


def _same_type(value, default):
    # bool is a subclass of int; keep them apart
    if isinstance(default, bool) or isinstance(value, bool):
        return type(value) is type(default)
    return isinstance(value, type(default))


class HenkanConfig:
    """
    Settings handed to HenkanProcessor.

    Only the conversion-related keys of config.json are kept here; file
    locations and the logging level are resolved by util.
    """

    def __init__(self, convert_half_kana=False, convert_wide_latin=False,
                 convert_wide_katakana=False, n_best=20, max_search_steps=10000,
                 learning_enabled=True, prediction_enabled=True, max_predictions=20):
        self.convert_half_kana = convert_half_kana
        self.convert_wide_latin = convert_wide_latin
        self.convert_wide_katakana = convert_wide_katakana
        self.n_best = max(1, n_best)
        self.max_search_steps = max(1, max_search_steps)
        self.learning_enabled = learning_enabled
        self.prediction_enabled = prediction_enabled
        self.max_predictions = max(1, max_predictions)

    @classmethod
    def from_dict(cls, data):
        """
        Build settings from a config.json dict.

        Unknown keys are ignored. Values of the wrong type fall back to the
        default with a warning.
        """
        kwargs = {}
        for key in ('convert_half_kana', 'convert_wide_latin', 'convert_wide_katakana',
                    'n_best', 'max_search_steps', 'learning_enabled',
                    'prediction_enabled', 'max_predictions'):
            default = DEFAULT_CONFIG[key]
            value = (data or {}).get(key, default)
            if not _same_type(value, default):
                logger.warning(f'Config key "{key}" has type {type(value).__name__}, '
                               f'expected {type(default).__name__}; using default {default!r}')
                value = default
            if key in _POSITIVE_KEYS and value < 1:
                logger.warning(f'Config key "{key}" must be at least 1 (got {value}); using 1')
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self):
        return {
            'convert_half_kana': self.convert_half_kana,
            'convert_wide_latin': self.convert_wide_latin,
            'convert_wide_katakana': self.convert_wide_katakana,
            'n_best': self.n_best,
            'max_search_steps': self.max_search_steps,
            'learning_enabled': self.learning_enabled,
            'prediction_enabled': self.prediction_enabled,
            'max_predictions': self.max_predictions,
        }

    def __repr__(self):
        return f'HenkanConfig({self.to_dict()})'
