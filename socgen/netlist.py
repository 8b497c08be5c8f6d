"""
Copyright 2022 Maximilian Schaller
Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at
    http://www.apache.org/licenses/LICENSE-2.0
Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import logging
from pathlib import Path
from typing import Union

import yaml

from socgen.errors import NetlistFormatError
from socgen.models import ExpandedNetlist, RawNetlist

logger = logging.getLogger(__name__)

NUMERIC_TAGS = ('tag:yaml.org,2002:int', 'tag:yaml.org,2002:float')


class NetlistLoader(yaml.SafeLoader):
    """
    SafeLoader that keeps numeric scalars as written

    Parameter overrides are Verilog literals: 010, 0x1F or 1:30 must reach the
    RTL unchanged instead of being read as YAML 1.1 numbers.
    """


NetlistLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in NUMERIC_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def parse_netlist(text: str, source: str = '<string>') -> RawNetlist:
    """Parse a netlist YAML document and check its top-level structure"""
    try:
        document = yaml.load(text, Loader=NetlistLoader)
    except yaml.YAMLError as e:
        raise NetlistFormatError(f'Error parsing YAML netlist {source}: {e}')
    try:
        return RawNetlist.from_document(document)
    except NetlistFormatError as e:
        raise NetlistFormatError(f'{source}: {e}')


def load_netlist(netlist_file: Union[Path, str]) -> RawNetlist:
    """
    Load a netlist file

    Raises:
        FileNotFoundError: netlist file does not exist
        NetlistFormatError: file is unreadable, not YAML, or lacks a valid 'instance' section
    """
    netlist_file = Path(netlist_file)
    if not netlist_file.is_file():
        raise FileNotFoundError(f'Netlist file does not exist: {netlist_file}')
    try:
        text = netlist_file.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise NetlistFormatError(f'Unable to open netlist file {netlist_file}: {e}')
    netlist = parse_netlist(text, str(netlist_file))
    logger.info(f'Successfully loaded netlist file: {netlist_file}')
    return netlist


def dump_netlist(netlist: Union[RawNetlist, ExpandedNetlist]) -> str:
    """Render a netlist back to YAML, keeping document key order"""
    return yaml.safe_dump(netlist.to_document(), sort_keys=False, default_flow_style=False)
