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
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from socgen.errors import NetlistFormatError, RecordError


def is_scalar(value: Any) -> bool:
    """YAML scalar that can be used as a name or a literal"""
    return isinstance(value, (str, int, float, bool))


def scalar_text(value: Any) -> str:
    """Render a YAML scalar the way it appears in generated RTL"""
    if isinstance(value, bool):
        return '1' if value else '0'
    return str(value)


def port_name_candidates(port_name: str, pad_prefix: str) -> List[str]:
    """
    Port names tried in order when resolving a port against a module interface:
    the literal name, the name with the pad prefix stripped, the name with the pad prefix added.
    """
    candidates = [port_name]
    if not pad_prefix:
        return candidates
    if port_name.startswith(pad_prefix) and len(port_name) > len(pad_prefix):
        candidates.append(port_name[len(pad_prefix):])
    candidates.append(pad_prefix + port_name)
    return candidates


# ---------------------------------------------------------------------------
# Netlist items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Endpoint:
    instance: str
    port: str

    @classmethod
    def from_record(cls, record: Any) -> 'Endpoint':
        if not isinstance(record, dict):
            raise RecordError(f'connection is not a map: {record!r}')
        instance = record.get('instance')
        port = record.get('port')
        if not is_scalar(instance) or not is_scalar(port) or instance == '' or port == '':
            raise RecordError(f'connection needs scalar instance and port: {record!r}')
        return cls(str(instance), str(port))

    def to_record(self) -> Dict[str, str]:
        return {'instance': self.instance, 'port': self.port}


@dataclass
class Net:
    """One signal-level wire: an ordered sequence of instance ports"""
    name: str
    endpoints: List[Endpoint] = field(default_factory=list)

    @classmethod
    def from_record(cls, name: Any, record: Any) -> 'Net':
        if not is_scalar(name) or name == '':
            raise RecordError(f'invalid net name: {name!r}')
        if not isinstance(record, list):
            raise RecordError(f'net {name} is not a sequence')
        return cls(str(name), [Endpoint.from_record(item) for item in record])

    def to_record(self) -> List[Dict[str, str]]:
        return [endpoint.to_record() for endpoint in self.endpoints]


@dataclass
class Instance:
    """A named placement of one module"""
    name: str
    module_name: str
    parameters: Any = None  # raw 'parameter' section, validated by the emitter

    @classmethod
    def from_record(cls, name: Any, record: Any) -> 'Instance':
        if not is_scalar(name) or name == '':
            raise RecordError(f'invalid instance name: {name!r}')
        if not isinstance(record, dict):
            raise RecordError(f'instance {name} is not a map')
        module_name = record.get('module')
        if not is_scalar(module_name) or module_name == '':
            raise RecordError(f'instance {name} has no module')
        return cls(str(name), str(module_name), record.get('parameter'))


# ---------------------------------------------------------------------------
# Library entries
# ---------------------------------------------------------------------------

@dataclass
class BusSignal:
    name: str
    direction: Optional[str] = None
    width: Optional[Any] = None
    qualifier: Optional[str] = None


@dataclass
class BusDefinition:
    """A bus type: ordered signal roles"""
    name: str
    signals: List[BusSignal] = field(default_factory=list)
    library: Optional[str] = None

    @property
    def signal_names(self) -> List[str]:
        return [signal.name for signal in self.signals]

    @classmethod
    def from_record(cls, name: str, record: Any, library: Optional[str] = None) -> 'BusDefinition':
        if not isinstance(record, dict):
            raise RecordError(f'bus {name} is not a map')
        ports = record.get('port') or {}
        if not isinstance(ports, dict):
            raise RecordError(f"bus {name} has an invalid 'port' section")
        signals = []
        for signal_name, signal in ports.items():
            signal = signal if isinstance(signal, dict) else {}
            signals.append(BusSignal(
                name=str(signal_name),
                direction=signal.get('direction'),
                width=signal.get('width'),
                qualifier=signal.get('qualifier'),
            ))
        return cls(name=str(name), signals=signals, library=library)


@dataclass
class ModulePort:
    name: str
    type: Optional[str] = None
    direction: Optional[str] = None


@dataclass
class ModuleParameter:
    name: str
    type: Optional[str] = None
    value: Optional[Any] = None


@dataclass
class ModuleBusInterface:
    """Bus metadata of one module port: bus type and bus signal -> module port mapping"""
    name: str
    bus_type: str
    mapping: Dict[str, str] = field(default_factory=dict)


def _read_mapping(record: Any) -> Dict[str, str]:
    if not isinstance(record, dict):
        return {}
    return {str(signal): ('' if port is None else str(port)) for signal, port in record.items()}


def _read_bus_interface(name: str, record: Any) -> Optional[ModuleBusInterface]:
    if not isinstance(record, dict) or not is_scalar(record.get('bus')):
        return None
    return ModuleBusInterface(name=name, bus_type=str(record['bus']), mapping=_read_mapping(record.get('mapping')))


@dataclass
class ModuleInterface:
    """Port and parameter contract of a reusable block"""
    name: str
    ports: Dict[str, ModulePort] = field(default_factory=dict)
    parameters: Dict[str, ModuleParameter] = field(default_factory=dict)
    buses: Dict[str, ModuleBusInterface] = field(default_factory=dict)
    library: Optional[str] = None

    @classmethod
    def from_record(cls, name: str, record: Any, library: Optional[str] = None) -> 'ModuleInterface':
        if not isinstance(record, dict):
            raise RecordError(f'module {name} is not a map')
        module = cls(name=str(name), library=library)

        ports = record.get('port') or {}
        if not isinstance(ports, dict):
            raise RecordError(f"module {name} has an invalid 'port' section")
        for port_name, port in ports.items():
            port_name = str(port_name)
            port = port if isinstance(port, dict) else {}
            port_type = port.get('type')
            module.ports[port_name] = ModulePort(
                name=port_name,
                type=None if port_type is None else str(port_type),
                direction=port.get('direction'),
            )
            bus = _read_bus_interface(port_name, port)
            if bus is not None:
                module.buses[port_name] = bus

        parameters = record.get('parameter') or {}
        if isinstance(parameters, dict):
            for param_name, param in parameters.items():
                param = param if isinstance(param, dict) else {}
                module.parameters[str(param_name)] = ModuleParameter(
                    name=str(param_name), type=param.get('type'), value=param.get('value'))

        # separate 'bus' section keyed by bus port name
        buses = record.get('bus') or {}
        if isinstance(buses, dict):
            for bus_port, bus_record in buses.items():
                bus = _read_bus_interface(str(bus_port), bus_record)
                if bus is not None:
                    module.buses[str(bus_port)] = bus

        return module

    def resolve_bus(self, port_name: str, pad_prefix: str = '') -> Optional[ModuleBusInterface]:
        for candidate in port_name_candidates(port_name, pad_prefix):
            bus = self.buses.get(candidate)
            if bus is not None:
                return bus
        return None

    def resolve_port(self, port_name: str, pad_prefix: str = '') -> Optional[ModulePort]:
        for candidate in port_name_candidates(port_name, pad_prefix):
            port = self.ports.get(candidate)
            if port is not None:
                return port
        return None


# ---------------------------------------------------------------------------
# Netlist documents
# ---------------------------------------------------------------------------

def _string_keys(section: Dict[Any, Any]) -> Dict[Any, Any]:
    return {(str(key) if is_scalar(key) and not isinstance(key, bool) else key): value
            for key, value in section.items()}


def _section(document: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = document.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise NetlistFormatError(f"Invalid netlist format, '{key}' section must be a map")
    return _string_keys(value)


@dataclass
class RawNetlist:
    """Netlist as loaded: instances, pre-populated nets and unexpanded bus groups"""
    instances: Dict[str, Any]
    nets: Dict[str, Any] = field(default_factory=dict)
    bus_groups: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Any) -> 'RawNetlist':
        if not isinstance(document, dict):
            raise NetlistFormatError('Invalid netlist format, document must be a map')
        instances = document.get('instance')
        if not isinstance(instances, dict) or not instances:
            raise NetlistFormatError("Invalid netlist format, missing or invalid 'instance' section")
        nets = _section(document, 'net')
        bus_groups = _section(document, 'bus')
        return cls(
            instances=copy.deepcopy(_string_keys(instances)),
            nets=copy.deepcopy(nets),
            bus_groups=copy.deepcopy(bus_groups),
        )

    def to_document(self) -> Dict[str, Any]:
        document = {'instance': self.instances, 'net': self.nets}
        if self.bus_groups:
            document['bus'] = self.bus_groups
        return document


@dataclass
class ExpandedNetlist:
    """Netlist after bus expansion; only point-to-point nets remain"""
    instances: Dict[str, Any]
    nets: Dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        return {'instance': self.instances, 'net': self.nets}

    def instance_record(self, name: str) -> Optional[Instance]:
        if name not in self.instances:
            return None
        try:
            return Instance.from_record(name, self.instances[name])
        except RecordError:
            return None
