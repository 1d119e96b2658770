"""Define functions for loading configuration data from YAML files."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import yaml

from manipulation_actions.logging import log_error, log_info

if TYPE_CHECKING:
    from pathlib import Path


def load_yaml_into_dict(yaml_path: Path) -> dict[str, Any]:
    """Load data from a YAML file into a Python dictionary.

    :param yaml_path: Path to the YAML file to be imported
    :return: Dictionary mapping strings to values (empty if the YAML file is nonexistent/invalid)
    """
    if not yaml_path.exists():
        log_error(f"The YAML path {yaml_path} doesn't exist!")
        return {}

    try:
        with yaml_path.open() as yaml_file:
            yaml_data = yaml.safe_load(yaml_file)
            log_info(f"Loaded data from YAML file: {yaml_path}")

    except yaml.YAMLError as error:
        log_error(f"Failed to load YAML file: {yaml_path}\nError: {error}")
        return {}

    if not isinstance(yaml_data, dict):
        log_error(f"Expected a mapping at the top level of YAML file: {yaml_path}")
        return {}

    return yaml_data
