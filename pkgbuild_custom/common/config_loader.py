"""
Config Loader Module - Handles configuration loading and validation
"""

import os
import logging
from pathlib import Path

import yaml

from pkgbuild_custom import config as config_module
from pkgbuild_custom.common.errors import ConfigError


logger = logging.getLogger(__name__)

EVALUATOR_CHOICES = ("auto", "bash", "parser")

# Runtime settings that may come from YAML, environment or CLI, with their types
RUNTIME_KEYS = {
    'debug_mode': bool,
    'evaluator': str,
    'verify_output': bool,
    'log_file': str,
    'upstream_ref': str,
}

ENV_VARIABLES = {
    'DEBUG_MODE': 'debug_mode',
    'PKGBUILD_EVALUATOR': 'evaluator',
    'PKGBUILD_VERIFY': 'verify_output',
}


class ConfigLoader:
    """Handles configuration loading and validation"""

    @staticmethod
    def load_defaults():
        """Build the base configuration dictionary from config.py"""
        return {
            'original_folder': config_module.ORIGINAL_FOLDER,
            'output_folder': config_module.OUTPUT_FOLDER,
            'descriptor_name': config_module.DESCRIPTOR_NAME,
            'patch_file': config_module.PATCH_FILE,
            'output_fields': list(config_module.OUTPUT_FIELDS),
            'overrides': list(config_module.OVERRIDES),
            'prepare_function': config_module.PREPARE_FUNCTION,
            'verbatim_functions': list(config_module.VERBATIM_FUNCTIONS),
            'evaluator': config_module.EVALUATOR,
            'bash_timeout': config_module.BASH_TIMEOUT,
            'verify_output': config_module.VERIFY_OUTPUT,
            'debug_mode': config_module.DEBUG_MODE,
            'log_file': config_module.LOG_FILE,
            'upstream_base_url': config_module.UPSTREAM_BASE_URL,
            'upstream_package': config_module.UPSTREAM_PACKAGE,
            'upstream_ref': config_module.UPSTREAM_REF,
            'upstream_timeout': config_module.UPSTREAM_TIMEOUT,
        }

    @staticmethod
    def load_yaml_config(config_path: Path, required: bool = False):
        """
        Load runtime settings from a YAML file.

        A missing file is not an error unless it was requested explicitly.
        """
        if not config_path.exists():
            if required:
                raise ConfigError(f"configuration file not found: {config_path}")
            logger.debug(f"No configuration file at {config_path}")
            return {}

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"error parsing {config_path}: {e}")
        except OSError as e:
            raise ConfigError(f"cannot read {config_path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping, not {type(data).__name__}")

        unknown = sorted(set(data) - set(RUNTIME_KEYS))
        if unknown:
            raise ConfigError(f"unknown settings in {config_path}: {', '.join(unknown)}")

        for key, value in data.items():
            expected = RUNTIME_KEYS[key]
            if value is not None and not isinstance(value, expected):
                raise ConfigError(f"setting '{key}' in {config_path} must be {expected.__name__}")

        logger.debug(f"CONFIG_FILE_LOADED path={config_path} keys={sorted(data)}")
        return data

    @staticmethod
    def load_environment_config():
        """Load runtime settings from environment variables"""
        settings = {}
        for var, key in ENV_VARIABLES.items():
            value = os.getenv(var)
            if value is None or value.strip() == '':
                continue
            if RUNTIME_KEYS[key] is bool:
                settings[key] = ConfigLoader._parse_bool(var, value)
            else:
                settings[key] = value.strip()
        return settings

    @staticmethod
    def _parse_bool(name, value):
        lowered = value.strip().lower()
        if lowered in ('1', 'true', 'yes', 'on'):
            return True
        if lowered in ('0', 'false', 'no', 'off'):
            return False
        raise ConfigError(f"{name} must be a boolean, got '{value}'")

    @staticmethod
    def load(config_path=None, cli_overrides=None, base_dir=None):
        """
        Resolve the configuration.

        Precedence (lowest to highest): config.py, YAML file, environment
        variables, CLI flags. A None CLI value means "not given".
        """
        base_dir = Path(base_dir) if base_dir else Path.cwd()
        config = ConfigLoader.load_defaults()

        if config_path:
            config.update(ConfigLoader.load_yaml_config(Path(config_path), required=True))
        else:
            config.update(ConfigLoader.load_yaml_config(base_dir / config_module.CONFIG_FILE))

        config.update(ConfigLoader.load_environment_config())

        for key, value in (cli_overrides or {}).items():
            if value is not None:
                config[key] = value

        if config['evaluator'] not in EVALUATOR_CHOICES:
            raise ConfigError(
                f"unknown evaluator '{config['evaluator']}', expected one of {', '.join(EVALUATOR_CHOICES)}"
            )

        config['base_dir'] = base_dir
        return config
