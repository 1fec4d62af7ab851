'''
Configuration management for armafit.

Settings are layered:
1. Defaults built into the dataclasses below
2. An optional JSON file named by ``ARMAFIT_CONFIG_FILE``
3. Environment variables of the form ``ARMAFIT_<SECTION>_<OPTION>``
4. Runtime modifications through ``set_config``

The optimizer and the likelihood adapter read their defaults from here when a
caller does not pass an explicit value, so a fit can be tuned without touching
call sites.
'''

import os
import json
import logging
from dataclasses import dataclass, field, asdict, fields
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .exceptions import ParameterError

# Set up module-level logger
logger = logging.getLogger("armafit.core.config")

CONFIG_ENV_PREFIX = "ARMAFIT_"
CONFIG_FILE_ENV = "ARMAFIT_CONFIG_FILE"


class ConfigSection(Enum):
    """Enumeration of configuration sections."""
    OPTIMIZER = "optimizer"
    LIKELIHOOD = "likelihood"
    LOGGING = "logging"


@dataclass
class OptimizerConfig:
    """
    Settings for BFGS and the strong Wolfe line search.

    Attributes:
        tol: Gradient norm at which BFGS stops
        c1: Sufficient decrease constant of the Wolfe conditions
        c2: Curvature constant of the Wolfe conditions
        max_iter: Maximum number of BFGS iterations
        line_search_max_iter: Iteration cap shared by both line search phases
        alpha0: First trial step of the line search
        alpha_max: Largest step the line search may try
        gradient_step: Step size of finite difference gradients
        curvature_eps: Relative threshold below which y's is treated as zero
    """
    tol: float = 1e-8
    c1: float = 1e-4
    c2: float = 0.9
    max_iter: int = 200
    line_search_max_iter: int = 100
    alpha0: float = 1.0
    alpha_max: float = 1000.0
    gradient_step: float = 1e-4
    curvature_eps: float = 1e-10


@dataclass
class LikelihoodConfig:
    """
    Settings for the ARMA likelihood objective.

    Attributes:
        penalty: Finite value returned for degenerate or inadmissible parameters
        check_stationarity: Whether to reject non-stationary/non-invertible regions
    """
    penalty: float = 1e10
    check_stationarity: bool = True


@dataclass
class LoggingConfig:
    """
    Logging settings for the ``armafit`` logger hierarchy.

    Attributes:
        log_level: Level of the package logger
        log_format: Format string for log messages
        log_date_format: Format string for log message timestamps
        console_logging: Whether to attach a console handler
    """
    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    console_logging: bool = True


@dataclass
class ArmaFitConfig:
    """Complete configuration, one attribute per section."""
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    likelihood: LikelihoodConfig = field(default_factory=LikelihoodConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _positive(value: Any) -> bool:
    return value > 0


def _open_unit(value: Any) -> bool:
    return 0 < value < 1


_CONSTRAINTS: Dict[str, Dict[str, Callable[[Any], bool]]] = {
    "optimizer": {
        "tol": _positive,
        "c1": _open_unit,
        "c2": _open_unit,
        "max_iter": _positive,
        "line_search_max_iter": _positive,
        "alpha0": _positive,
        "alpha_max": _positive,
        "gradient_step": _positive,
        "curvature_eps": lambda v: v >= 0,
    },
    "likelihood": {
        "penalty": _positive,
    },
    "logging": {
        "log_level": lambda v: v in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    },
}


class ConfigManager:
    """
    Configuration manager for armafit.

    Attributes:
        _config: The current configuration object
        _initialized: Whether defaults, file and environment have been applied
        _config_file: Path of the JSON configuration file, if any
    """

    def __init__(self):
        self._config = ArmaFitConfig()
        self._initialized = False
        self._config_file: Optional[Path] = None
        self._modified_keys = set()

    def initialize(self) -> None:
        """
        Load the configuration file, apply environment overrides and set up
        logging. Calling it again is a no-op.
        """
        if self._initialized:
            return

        env_file = os.environ.get(CONFIG_FILE_ENV)
        if env_file:
            self._config_file = Path(env_file)
            self._load_user_config()

        self._apply_env_overrides()
        self._validate_config()
        self._setup_logging()

        self._initialized = True
        logger.debug("Configuration manager initialized")

    def _load_user_config(self) -> None:
        if not self._config_file or not self._config_file.exists():
            logger.debug("No user configuration file found")
            return

        try:
            with open(self._config_file, 'r') as f:
                user_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load user configuration: {e}")
            return

        self._update_from_dict(user_config)
        logger.debug(f"Loaded user configuration from {self._config_file}")

    def _apply_env_overrides(self) -> None:
        for env_var, value in os.environ.items():
            if not env_var.startswith(CONFIG_ENV_PREFIX) or env_var == CONFIG_FILE_ENV:
                continue

            # Remove prefix and split into section and option
            key = env_var[len(CONFIG_ENV_PREFIX):]
            parts = key.lower().split('_', 1)
            if len(parts) != 2:
                continue

            section, option = parts
            try:
                ConfigSection(section)
            except ValueError:
                continue

            section_obj = getattr(self._config, section)
            if not hasattr(section_obj, option):
                continue

            value_type = type(getattr(section_obj, option))
            try:
                if value_type is bool:
                    typed_value = value.lower() in ('true', 'yes', '1', 'y')
                elif value_type is int:
                    typed_value = int(value)
                elif value_type is float:
                    typed_value = float(value)
                else:
                    typed_value = value
            except ValueError as e:
                logger.warning(f"Failed to apply environment override {env_var}: {e}")
                continue

            setattr(section_obj, option, typed_value)
            logger.debug(f"Applied environment override: {env_var}={value}")

    def _setup_logging(self) -> None:
        package_logger = logging.getLogger("armafit")
        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)

        package_logger.setLevel(getattr(logging, self._config.logging.log_level))

        if self._config.logging.console_logging:
            formatter = logging.Formatter(
                fmt=self._config.logging.log_format,
                datefmt=self._config.logging.log_date_format
            )
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            package_logger.addHandler(console_handler)

    def _validate_config(self) -> None:
        for section_name in _CONSTRAINTS:
            section = getattr(self._config, section_name)
            for option in _CONSTRAINTS[section_name]:
                self._validate_constraint(section_name, option, getattr(section, option))

    def _validate_constraint(self, section: str, option: str, value: Any) -> None:
        check = _CONSTRAINTS.get(section, {}).get(option)
        if check is not None and not check(value):
            raise ParameterError(
                f"Invalid value for configuration option {section}.{option}",
                param_name=f"{section}.{option}",
                param_value=value
            )

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        for section_name, options in config_dict.items():
            if not self.has_section(section_name) or not isinstance(options, dict):
                logger.warning(f"Ignoring unknown configuration section: {section_name}")
                continue
            section = getattr(self._config, section_name)
            for option, value in options.items():
                if hasattr(section, option):
                    setattr(section, option, value)
                else:
                    logger.warning(f"Ignoring unknown configuration option: {section_name}.{option}")

    def save_user_config(self, path: Optional[Union[str, Path]] = None) -> None:
        """
        Write the current configuration as JSON.

        Args:
            path: Target file; defaults to the file named by ``ARMAFIT_CONFIG_FILE``
        """
        target = Path(path) if path is not None else self._config_file
        if target is None:
            raise ParameterError(
                "No configuration file to save to",
                param_name="path",
                constraint=f"pass a path or set {CONFIG_FILE_ENV}"
            )
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w') as f:
            json.dump(self.to_dict(), f, indent=4)
        logger.debug(f"Saved configuration to {target}")

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as a nested dictionary."""
        return asdict(self._config)

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """Return a configuration value, or ``default`` if it does not exist."""
        self.initialize()
        section_obj = getattr(self._config, section, None)
        if section_obj is None:
            return default
        return getattr(section_obj, option, default)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Set a configuration value.

        Raises:
            ParameterError: If the section or option does not exist, or the
                value violates the option's constraint
        """
        self.initialize()
        if not self.has_option(section, option):
            raise ParameterError(
                f"Unknown configuration option: {section}.{option}",
                param_name=f"{section}.{option}"
            )
        self._validate_constraint(section, option, value)
        setattr(getattr(self._config, section), option, value)
        self._modified_keys.add((section, option))
        if section == ConfigSection.LOGGING.value:
            self._setup_logging()
        logger.debug(f"Set configuration {section}.{option}={value!r}")

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """
        Reset configuration values to their defaults.

        Args:
            section: Section to reset; all sections when None
            option: Option to reset within ``section``; the whole section when None
        """
        defaults = ArmaFitConfig()
        if section is None:
            self._config = defaults
            self._modified_keys.clear()
        elif option is None:
            setattr(self._config, section, getattr(defaults, section))
            self._modified_keys = {k for k in self._modified_keys if k[0] != section}
        else:
            setattr(getattr(self._config, section), option,
                    getattr(getattr(defaults, section), option))
            self._modified_keys.discard((section, option))
        if section in (None, ConfigSection.LOGGING.value):
            self._setup_logging()

    def is_modified(self, section: str, option: str) -> bool:
        return (section, option) in self._modified_keys

    def has_section(self, section: str) -> bool:
        return section in (s.value for s in ConfigSection)

    def has_option(self, section: str, option: str) -> bool:
        if not self.has_section(section):
            return False
        return option in {f.name for f in fields(getattr(self._config, section))}

    def get_sections(self) -> List[str]:
        return [s.value for s in ConfigSection]

    def get_section(self, section: str) -> Any:
        """Return the dataclass holding one configuration section."""
        self.initialize()
        if not self.has_section(section):
            raise ParameterError(f"Unknown configuration section: {section}", param_name="section",
                                 param_value=section)
        return getattr(self._config, section)


_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Return the process-wide configuration manager."""
    return _config_manager


def get_config(section: str, option: str, default: Any = None) -> Any:
    """Return a configuration value."""
    return _config_manager.get(section, option, default)


def set_config(section: str, option: str, value: Any) -> None:
    """Set a configuration value."""
    _config_manager.set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """Reset configuration values to their defaults."""
    _config_manager.reset(section, option)


def get_optimizer_config() -> OptimizerConfig:
    """Return the optimizer configuration section."""
    return _config_manager.get_section(ConfigSection.OPTIMIZER.value)


def get_likelihood_config() -> LikelihoodConfig:
    """Return the likelihood configuration section."""
    return _config_manager.get_section(ConfigSection.LIKELIHOOD.value)


def get_logging_config() -> LoggingConfig:
    """Return the logging configuration section."""
    return _config_manager.get_section(ConfigSection.LOGGING.value)
