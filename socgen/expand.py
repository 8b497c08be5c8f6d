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

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from socgen.config import DEFAULT_PAD_PREFIX
from socgen.errors import NetlistFormatError, RecordError
from socgen.library import BusLibrary, ModuleLibrary
from socgen.models import (BusDefinition, Endpoint, ExpandedNetlist, Instance, ModuleInterface, Net,
                           RawNetlist, is_scalar)
from socgen.netlist import dump_netlist

logger = logging.getLogger(__name__)


@dataclass
class BusConnection:
    """A bus group entry that survived validation"""
    instance: str
    port: str
    module: ModuleInterface
    bus_type: str


def net_name(group_name: str, signal_name: str) -> str:
    return f'{group_name}_{signal_name}'


class BusExpander:
    """
    Rewrite abstract bus connections into signal-level nets

    Every bus group is handled on its own in two passes. Pass 1 validates each
    (instance, port) entry against the netlist, the module library and the bus
    library; the bus type of the first valid entry fixes the type of the group.
    Pass 2 walks the signals of that bus type in definition order and creates
    one net '<group>_<signal>' per signal with at least one mapped endpoint.

    Per-entry problems are logged and the entry is dropped; only structural
    problems of the document itself are fatal.
    """

    def __init__(self, bus_library: BusLibrary, module_library: ModuleLibrary,
                 pad_prefix: str = DEFAULT_PAD_PREFIX):
        self.bus_library = bus_library
        self.module_library = module_library
        self.pad_prefix = pad_prefix
        self.warnings: List[str] = []

    def _warn(self, message: str):
        self.warnings.append(message)
        logger.warning(message)

    def expand(self, netlist: RawNetlist) -> ExpandedNetlist:
        """
        Expand all bus groups of netlist

        Args:
            netlist: Loaded netlist; left untouched

        Returns:
            New netlist holding the instances and the pre-populated plus generated nets
        """
        self.warnings = []
        if isinstance(netlist, ExpandedNetlist):
            return copy.deepcopy(netlist)
        if not isinstance(netlist.instances, dict) or not netlist.instances:
            raise NetlistFormatError("Invalid netlist data, missing or invalid 'instance' section")
        if not isinstance(netlist.nets, dict) or not isinstance(netlist.bus_groups, dict):
            raise NetlistFormatError("Invalid netlist data, 'net' and 'bus' sections must be maps")

        instances = copy.deepcopy(netlist.instances)
        nets = copy.deepcopy(netlist.nets)

        for group_name, group in netlist.bus_groups.items():
            group_name = str(group_name)
            entries = self._group_entries(group_name, group)
            if not entries:
                continue
            connections = self._collect(group_name, entries, instances)
            if not connections:
                logger.info(f'Bus group {group_name} has no valid connection, skipped')
                continue
            bus = self.bus_library.get_bus(connections[0].bus_type)
            for net in self._synthesize(group_name, bus, connections):
                self._merge(nets, net)

        expanded = ExpandedNetlist(instances=instances, nets=nets)
        logger.info('Netlist processed, all buses expanded into individual signals')
        logger.debug('Expanded netlist:\n' + dump_netlist(expanded))
        return expanded

    def _group_entries(self, group_name: str, group: Any) -> List[Tuple[str, str]]:
        """(instance, port) pairs of a bus group, in document order"""
        if group is None:
            return []
        entries = []
        if isinstance(group, dict):
            for instance_name, body in group.items():
                port = body.get('port') if isinstance(body, dict) else None
                if not is_scalar(instance_name) or not is_scalar(port) or port == '':
                    self._warn(f'Invalid connection data for {instance_name} in bus {group_name}')
                    continue
                entries.append((str(instance_name), str(port)))
        elif isinstance(group, list):
            for item in group:
                try:
                    endpoint = Endpoint.from_record(item)
                except RecordError:
                    self._warn(f'Invalid connection data in bus {group_name}')
                    continue
                entries.append((endpoint.instance, endpoint.port))
        else:
            self._warn(f'Invalid bus connection format for {group_name}')
        return entries

    def _validate(self, group_name: str, instance_name: str, port: str,
                  instances: Dict[str, Any]) -> Optional[BusConnection]:
        if instance_name not in instances:
            self._warn(f'Instance {instance_name} not found in netlist (bus {group_name})')
            return None
        try:
            instance = Instance.from_record(instance_name, instances[instance_name])
        except RecordError as e:
            self._warn(f'Invalid instance data in bus {group_name}: {e}')
            return None

        module = self.module_library.get_module(instance.module_name)
        if module is None:
            self._warn(f'Module {instance.module_name} not found in module library')
            return None

        bus = module.resolve_bus(port, self.pad_prefix)
        if bus is None:
            self._warn(f'Bus {port} not found in module {module.name}')
            return None

        if not self.bus_library.bus_exists(bus.bus_type):
            self._warn(f'Bus type {bus.bus_type} not found in bus library')
            return None

        return BusConnection(instance=instance_name, port=port, module=module, bus_type=bus.bus_type)

    def _collect(self, group_name: str, entries: List[Tuple[str, str]],
                 instances: Dict[str, Any]) -> List[BusConnection]:
        """Pass 1: validated connections sharing the bus type of the first valid one"""
        connections: List[BusConnection] = []
        for instance_name, port in entries:
            connection = self._validate(group_name, instance_name, port, instances)
            if connection is None:
                continue
            if connections and connection.bus_type != connections[0].bus_type:
                self._warn(
                    f'Bus type mismatch in bus {group_name}: {instance_name}.{port} is '
                    f'{connection.bus_type}, expected {connections[0].bus_type}')
                continue
            connections.append(connection)
        return connections

    def _synthesize(self, group_name: str, bus: BusDefinition,
                    connections: List[BusConnection]) -> List[Net]:
        """Pass 2: one net per bus signal, in bus definition order"""
        nets = []
        for signal in bus.signal_names:
            net = Net(net_name(group_name, signal))
            for connection in connections:
                module_bus = connection.module.resolve_bus(connection.port, self.pad_prefix)
                mapped_port = module_bus.mapping.get(signal) if module_bus is not None else None
                if mapped_port:
                    net.endpoints.append(Endpoint(connection.instance, mapped_port))
            if net.endpoints:
                nets.append(net)
            else:
                logger.debug(f'Net {net.name} has no endpoint, discarded')
        return nets

    def _merge(self, nets: Dict[str, Any], net: Net):
        existing = nets.get(net.name)
        if existing is None:
            nets[net.name] = net.to_record()
        elif isinstance(existing, list):
            existing.extend(net.to_record())
        else:
            self._warn(f'Net {net.name} is not a sequence, replaced by expanded bus net')
            nets[net.name] = net.to_record()


def expand(netlist: RawNetlist, bus_library: BusLibrary, module_library: ModuleLibrary,
           pad_prefix: str = DEFAULT_PAD_PREFIX) -> ExpandedNetlist:
    """Expand all bus groups of netlist into nets"""
    return BusExpander(bus_library, module_library, pad_prefix).expand(netlist)
