import json
import logging
import os

from gi.repository import GLib

import config as henkan_config
from henkan import HenkanProcessor

logger = logging.getLogger(__name__)

NAME_TO_LOGGING_LEVEL = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}

# config.json keys naming dictionary / table files
DICTIONARY_FILE_KEYS = ('system_dictionary', 'learning_dictionary',
                        'prediction_dictionary', 'connection_table')


def get_package_name():
    '''
    returns 'kkhenkan'
    '''
    return 'kkhenkan'


def get_version():
    return '0.1.0'


def get_user_config_dir():
    '''
    Return the path to the config directory under $HOME.
    Typically, it would be $HOME/.config/kkhenkan
    '''
    return os.path.join(GLib.get_user_config_dir(), get_package_name())


def get_default_config_data():
    return henkan_config.get_default_config()


def get_config_data(config_dir=None):
    '''
    Load config.json from the user config directory ($HOME/.config/kkhenkan).
    When the file is not present (e.g., on first run), the default
    configuration is written there.

    Returns:
        tuple: (config_data, warnings_string) where warnings_string is empty if no warnings
    '''
    if config_dir is None:
        config_dir = get_user_config_dir()
    configfile_path = os.path.join(config_dir, 'config.json')
    default_config = get_default_config_data()
    warnings = ""

    if not os.path.exists(configfile_path):
        warning_msg = f'config.json is not found under {config_dir} . Writing the default configuration ..'
        logger.warning(warning_msg)
        warnings = warning_msg
        save_config_data(default_config, config_dir)
        return default_config, warnings

    try:
        with open(configfile_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except (json.decoder.JSONDecodeError, OSError) as e:
        logger.error(f'Error loading the config.json under {config_dir}')
        logger.error(e)
        logger.error('Using (but not writing) the default configuration ..')
        return default_config, warnings

    if not isinstance(config_data, dict):
        logger.error(f'config.json under {config_dir} is not a JSON object. Using the default configuration ..')
        return default_config, warnings

    for k in default_config:
        if k not in config_data:
            warning_msg = f'The key "{k}" was not found in the config.json under {config_dir} . Copying the default key-value'
            logger.warning(warning_msg)
            warnings += ("\n" if warnings else "") + warning_msg
            config_data[k] = default_config[k]
        if type(config_data[k]) != type(default_config[k]):
            warning_msg = f'Type mismatch found for the key "{k}" between config.json under {config_dir} and the default configuration. Replacing the value of this key with the default value'
            logger.warning(warning_msg)
            warnings += ("\n" if warnings else "") + warning_msg
            config_data[k] = default_config[k]

    return config_data, warnings


def save_config_data(config_data, config_dir=None):
    '''
    Save config data to the user config directory.

    Args:
        config_data: Dictionary containing configuration data to save
        config_dir: Target directory (default: user config directory)

    Returns:
        bool: True if save was successful, False otherwise
    '''
    if config_dir is None:
        config_dir = get_user_config_dir()
    configfile_path = os.path.join(config_dir, 'config.json')

    try:
        os.makedirs(config_dir, exist_ok=True)
        with open(configfile_path, 'w', encoding='utf-8') as f:
            json.dump(config_data, f, ensure_ascii=False, indent=2)

        logger.info(f'Configuration saved successfully to {configfile_path}')
        return True
    except Exception as e:
        logger.error(f'Error saving config.json to {configfile_path}')
        logger.error(e)
        return False


def load_logging_level(config):
    '''
    Set the root logging level from the "logging_level" config value.
    When the value is absent or not recognized, WARNING is used.

    Returns:
        str: The level name that was applied
    '''
    level = config.get('logging_level', 'WARNING')
    if level not in NAME_TO_LOGGING_LEVEL:
        logger.warning(f'Specified logging level {level} is not recognized. Using the default WARNING level.')
        level = 'WARNING'
    logger.info(f'logging_level: {level}')
    logging.getLogger().setLevel(NAME_TO_LOGGING_LEVEL[level])
    return level


def get_dictionary_paths(config, config_dir=None):
    """
    Resolve the dictionary and connection table file names of ``config``.

    Relative names are taken relative to the user config directory;
    absolute paths are used as-is.

    Returns:
        dict: {'system_dictionary': path, 'learning_dictionary': path,
               'prediction_dictionary': path, 'connection_table': path}
    """
    if config_dir is None:
        config_dir = get_user_config_dir()
    defaults = get_default_config_data()
    paths = {}
    for key in DICTIONARY_FILE_KEYS:
        name = config.get(key) or defaults[key]
        paths[key] = name if os.path.isabs(name) else os.path.join(config_dir, name)
    return paths


def open_processor(config=None, config_dir=None):
    """
    Create a HenkanProcessor from config.json settings.

    Args:
        config: Config dict. If None, loaded via get_config_data().
        config_dir: Directory holding config.json and the dictionaries

    Returns:
        HenkanProcessor
    """
    if config is None:
        config, _ = get_config_data(config_dir)
    load_logging_level(config)
    paths = get_dictionary_paths(config, config_dir)
    settings = henkan_config.HenkanConfig.from_dict(config)
    return HenkanProcessor.from_files(
        paths['system_dictionary'],
        paths['learning_dictionary'],
        paths['connection_table'],
        prediction_path=paths['prediction_dictionary'] if settings.prediction_enabled else None,
        config=settings,
    )
