"""Configuration loading and logging setup for the flagging tools."""

import logging
import os

from omegaconf import OmegaConf

log_stream = logging.StreamHandler()
log = logging.getLogger(__name__)


def load_config(config_file: str = None):
    """
    Combines default and user-specified configuration settings.

    User-specified settings can be given in two forms: as a YAML file in the
    current directory named "flagging_config.yml", or as an explicit `config_file`
    which takes precedence over both.

    The format of the file is (all sections optional):
    ```
    logging:
      format: string for the `logging.formatter`
      level: logging level for the root logger
      modules:
        module_name: logging level for the submodule `module_name`
    filters:
      tsys: whether to run the Tsys filter
      mad: whether to run the bandpass MAD filter
      dummy: whether to run the dummy filter
    tsys:
      tolerance: fraction of the median bandpass to clip
    mad:
      pthresh: upper threshold in MAD units
      nthresh: lower threshold in MAD units
    ```

    Returns
    -------
    The `omegaconf` configuration object merging all the default configuration
    with the (optional) user-specified overrides.
    """
    base_config = OmegaConf.load(os.path.dirname(__file__) + "/flagging_config.yml")
    if os.path.exists("./flagging_config.yml"):
        user_config = OmegaConf.load("./flagging_config.yml")
    else:
        user_config = OmegaConf.create()

    if config_file is not None:
        file_config = OmegaConf.load(config_file)
    else:
        file_config = OmegaConf.create()

    return OmegaConf.merge(base_config, user_config, file_config)


def filter_settings(config):
    """
    Split the configuration into the arguments of `FilterPipeline`.

    Returns
    -------
    masks_to_apply: dict
        Filter names to booleans.
    filter_params: dict
        Filter names to the keyword arguments of that filter.
    """
    masks_to_apply = OmegaConf.to_container(config.filters)
    filter_params = {
        name: OmegaConf.to_container(config[name])
        for name in masks_to_apply
        if name in config
    }
    return masks_to_apply, filter_params


def apply_logging_config(config):
    """
    Applies logging settings from the given configuration.

    Logging settings are under the 'logging' key, and include:
    - format: string for the `logging.formatter`
    - level: logging level for the root logger
    - modules: a dictionary of submodule names and logging level to be
               applied to that submodule's logger
    """
    log_stream.setFormatter(
        logging.Formatter(fmt=config.logging.format, datefmt="%b %d %H:%M:%S")
    )
    if log_stream not in logging.root.handlers:
        logging.root.addHandler(log_stream)

    logging.root.setLevel(config.logging.level.upper())
    log.debug("Set default level to: %s", config.logging.level)

    if "modules" in config.logging:
        for module_name, level in config.logging["modules"].items():
            logging.getLogger(module_name).setLevel(level.upper())
            log.debug("Set %s level to: %s", module_name, level)
