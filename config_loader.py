"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from pathlib import Path
from typing import Any, Dict, List

import yaml

DEFAULT_SOURCE_CODE_EXTENSIONS: List[str] = [
    ".pas", ".dpr",
    ".vbs", ".vb",
    ".bat", ".cmd", ".sh", ".ps1",
    ".sln",
    ".vcxproj", ".cpp", ".h", ".hpp",
    ".csproj", ".cs", ".go",
    ".py", ".lua", ".js", ".ts",
]


def default_data_directory() -> str:
    """Location where the WizNote desktop client keeps its accounts."""
    return str(Path.home() / 'Documents' / 'My Knowledge' / 'Data')


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str, required: bool = True) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file
            required: When False, a missing file yields an empty configuration

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist and is required
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            if required:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return {}

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            return {}

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        cls._validate_required_field(config, 'wiznote.account_directory')
        account_dir = get_nested(config, 'wiznote.account_directory')
        if not os.path.isdir(account_dir):
            raise ValueError(
                f"wiznote.account_directory '{account_dir}' is not a valid directory"
            )

        cls._validate_required_field(config, 'export.output_directory')
        output_dir = get_nested(config, 'export.output_directory')
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"export.output_directory '{output_dir}' is not a directory")

        extensions = get_nested(config, 'export.source_code_extensions', DEFAULT_SOURCE_CODE_EXTENSIONS)
        if not isinstance(extensions, list) or not all(isinstance(ext, str) for ext in extensions):
            raise ValueError("export.source_code_extensions must be a list of strings")
        for ext in extensions:
            if not ext.startswith('.') or ext in ('.md', '.txt'):
                raise ValueError(
                    f"export.source_code_extensions entry '{ext}' must start with '.' "
                    f"and cannot be .md or .txt"
                )

        progress_bars = get_nested(config, 'export.progress_bars', True)
        if not isinstance(progress_bars, bool):
            raise ValueError("export.progress_bars must be a boolean")

        level = get_nested(config, 'logging.level')
        if level is not None and str(level).upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("logging.level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('wiznote', 'export', 'logging'):
            if not isinstance(merged.get(section), dict):
                merged[section] = {}

        if getattr(args, 'data_dir', None):
            merged['wiznote']['data_directory'] = args.data_dir
        merged['wiznote'].setdefault('data_directory', default_data_directory())

        if getattr(args, 'account_dir', None):
            merged['wiznote']['account_directory'] = args.account_dir
        elif getattr(args, 'account', None):
            merged['wiznote']['account_directory'] = os.path.join(
                merged['wiznote']['data_directory'], args.account
            )

        if getattr(args, 'output_dir', None):
            merged['export']['output_directory'] = args.output_dir

        if getattr(args, 'no_progress', False):
            merged['export']['progress_bars'] = False

        if getattr(args, 'log_file', None):
            merged['logging']['file'] = args.log_file

        verbose = getattr(args, 'verbose', 0)
        if verbose >= 2:
            merged['logging']['level'] = 'DEBUG'
        elif verbose == 1:
            merged['logging']['level'] = 'INFO'

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "export.output_directory")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    value = config

    for key in path.split('.'):
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'get_nested', 'DEFAULT_SOURCE_CODE_EXTENSIONS', 'default_data_directory']
