import copy
from itertools import product
from pathlib import Path
from typing import Iterator, Dict, Any, Tuple, Union

import yaml

from factorysim.simulator.parameters import Parameters


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as file:
        cfg = yaml.safe_load(file)
    if not isinstance(cfg, dict):
        raise TypeError(f"Config file {path} must contain a mapping at the top level")
    return cfg


def simulation_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    simulation = cfg.get("simulation")
    if not isinstance(simulation, dict):
        raise TypeError("cfg['simulation'] must be a mapping of parameter names to values")
    return simulation


def output_config(cfg: Dict[str, Any]) -> Tuple[Path, int]:
    output = cfg.get("output", {}) or {}
    if not isinstance(output, dict):
        raise TypeError("cfg['output'] must be a mapping")
    return Path(output.get("directory", "data")), int(output.get("output_level", 2))


def parameter_variations_iterator(sim_params: Dict[str, Any]) -> Iterator[Parameters]:
    variable_fields = sim_params.get('variable_fields', [])
    fixed_params = {name: value for name, value in sim_params.items() if name != 'variable_fields'}

    if variable_fields:
        for field_name in variable_fields:
            if not isinstance(fixed_params.get(field_name), list):
                raise TypeError(f"variable field '{field_name}' must be given as a list of values")
        parameter_list = [fixed_params[field_name] for field_name in variable_fields]
        for combo in product(*parameter_list):
            param_copy = copy.deepcopy(fixed_params)
            for i, field_name in enumerate(variable_fields):
                param_copy[field_name] = combo[i]
            yield Parameters.from_config(param_copy)
    else:
        yield Parameters.from_config(fixed_params)


def parameters_iterator(cfg: Dict[str, Any]) -> Iterator[Parameters]:
    return parameter_variations_iterator(simulation_config(cfg))
