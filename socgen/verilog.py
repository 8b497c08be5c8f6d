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
from typing import Any, Dict, List, Optional, Tuple, Union

from socgen.config import DEFAULT_PAD_PREFIX
from socgen.errors import PreconditionError, RecordError
from socgen.library import ModuleLibrary
from socgen.models import ExpandedNetlist, Instance, ModulePort, Net, is_scalar, scalar_text
from socgen.rtl_writer import RTLWriter

logger = logging.getLogger(__name__)

PORT_PLACEHOLDER = 'Port connections would go here'


class VerilogGenerator:
    """
    Emit a Verilog top module from an expanded netlist

    The module holds one instantiation per netlist instance followed by one
    wire declaration per net. A wire takes the type of the port behind its
    first endpoint. Malformed instances and nets are logged and left out.
    """

    def __init__(self, module_library: ModuleLibrary, output_dir: Optional[Union[Path, str]] = None,
                 pad_prefix: str = DEFAULT_PAD_PREFIX, connect_ports: bool = False):
        """
        Args:
            module_library: Module interfaces used to type wires
            output_dir: Directory receiving '<output_name>.v'; nothing is written when None
            pad_prefix: Pad prefix tolerated when looking up port types
            connect_ports: Bind instance ports to nets instead of writing a placeholder
        """
        self.module_library = module_library
        self.output_dir = Path(output_dir) if output_dir is not None else None
        self.pad_prefix = pad_prefix
        self.connect_ports = connect_ports
        self.warnings: List[str] = []

    def _warn(self, message: str):
        self.warnings.append(message)
        logger.warning(message)

    @staticmethod
    def _check(netlist: Any, output_name: str):
        if not isinstance(netlist, ExpandedNetlist):
            raise PreconditionError(
                "Invalid netlist data, make sure the netlist has been loaded and expanded")
        if not isinstance(netlist.instances, dict) or not netlist.instances:
            raise PreconditionError("Invalid netlist data, missing or invalid 'instance' section")
        if not isinstance(netlist.nets, dict):
            raise PreconditionError("Invalid netlist data, 'net' section must be a map")
        if not output_name:
            raise PreconditionError("Output name must not be empty")

    def generate(self, netlist: ExpandedNetlist, output_name: str) -> str:
        """
        Generate the Verilog text for netlist

        Args:
            netlist: Netlist returned by the bus expander
            output_name: Name of the top module and of the output file

        Returns:
            Generated Verilog source
        """
        self._check(netlist, output_name)
        self.warnings = []

        # wires are resolved first so that ports only bind to declared nets
        wires = self._resolve_wires(netlist)
        bindings = self._bindings([net for net, _ in wires]) if self.connect_ports else {}

        writer = RTLWriter()
        writer.write_header()
        writer.begin_module(output_name)
        writer.end_ports()
        writer.indent()

        for name, record in netlist.instances.items():
            self._write_instance(writer, name, record, bindings)

        for net, data_type in wires:
            writer.write_wire(net.name, data_type)

        writer.dedent()
        if writer.lines and writer.lines[-1]:
            writer.write_blank()
        writer.end_module()

        if self.output_dir is not None:
            writer.save(self.output_dir / f"{output_name}.v")
        return writer.get_content()

    def _resolve_wires(self, netlist: ExpandedNetlist) -> List[Tuple[Net, Optional[str]]]:
        """Nets that get a wire declaration, with their type, in document order"""
        wires = []
        for name, record in netlist.nets.items():
            try:
                net = Net.from_record(name, record)
            except RecordError as e:
                self._warn(f"Invalid net data for {name}: {e}")
                continue
            if not net.endpoints:
                self._warn(f"Invalid net data for {name}: no connection")
                continue
            port = self._first_port(netlist, net)
            if port is None:
                continue
            wires.append((net, port.type))
        return wires

    def _bindings(self, nets: List[Net]) -> Dict[str, List[Tuple[str, str]]]:
        """instance -> [(port, net)] in net order; a port keeps its first net"""
        bindings: Dict[str, List[Tuple[str, str]]] = {}
        for net in nets:
            for endpoint in net.endpoints:
                connections = bindings.setdefault(endpoint.instance, [])
                bound = dict(connections)
                if endpoint.port in bound:
                    if bound[endpoint.port] != net.name:
                        self._warn(f"Port {endpoint.instance}.{endpoint.port} already connected to "
                                   f"{bound[endpoint.port]}, ignoring net {net.name}")
                    continue
                connections.append((endpoint.port, net.name))
        return bindings

    def _parameters(self, instance: Instance) -> List[Tuple[str, str]]:
        parameters = instance.parameters
        if parameters is None:
            return []
        if not isinstance(parameters, dict):
            self._warn(f"Invalid parameter data for instance {instance.name}")
            return []
        overrides = []
        for name, value in parameters.items():
            if not is_scalar(name) or not is_scalar(value):
                self._warn(f"Invalid parameter {name} for instance {instance.name}")
                continue
            overrides.append((str(name), scalar_text(value)))
        return overrides

    def _write_instance(self, writer: RTLWriter, name: Any, record: Any,
                        bindings: Dict[str, List[Tuple[str, str]]]):
        try:
            instance = Instance.from_record(name, record)
        except RecordError as e:
            self._warn(f"Invalid instance data for {name}: {e}")
            return

        writer.begin_instance(instance.module_name, instance.name, self._parameters(instance))
        connections = bindings.get(instance.name)
        if connections:
            writer.write_connections(connections)
        else:
            writer.write_comment(PORT_PLACEHOLDER)
        writer.end_instance()

    def _first_port(self, netlist: ExpandedNetlist, net: Net) -> Optional[ModulePort]:
        """Port behind the first endpoint of net, which decides the wire type"""
        first = net.endpoints[0]
        instance = netlist.instance_record(first.instance)
        if instance is None:
            self._warn(f"Instance {first.instance} of net {net.name} not found in netlist")
            return None
        module = self.module_library.get_module(instance.module_name)
        if module is None:
            self._warn(f"Module {instance.module_name} not found in module library")
            return None
        port = module.resolve_port(first.port, self.pad_prefix)
        if port is None:
            self._warn(f"Port {first.port} not found in module {module.name}")
        return port


def generate(netlist: ExpandedNetlist, module_library: ModuleLibrary, output_name: str,
             output_dir: Optional[Union[Path, str]] = None, pad_prefix: str = DEFAULT_PAD_PREFIX,
             connect_ports: bool = False) -> str:
    """Generate Verilog for netlist and write '<output_dir>/<output_name>.v' when output_dir is given"""
    generator = VerilogGenerator(module_library, output_dir, pad_prefix, connect_ports)
    return generator.generate(netlist, output_name)
