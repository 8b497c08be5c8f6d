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
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from socgen.config import GeneratorConfig
from socgen.errors import OutputError, SocGenError
from socgen.expand import BusExpander
from socgen.library import BusLibrary, ModuleLibrary
from socgen.netlist import dump_netlist, load_netlist
from socgen.verilog import VerilogGenerator

logger = logging.getLogger(__name__)

NETLIST_DUMP_SUFFIX = '.expanded.soc_net'


def output_name_for(netlist_file: Union[Path, str]) -> str:
    """Top module name of a netlist file: its file name up to the first dot"""
    return Path(netlist_file).name.split('.')[0]


@dataclass
class GenerationResult:
    """Outcome of one netlist file"""
    netlist_file: Path
    output_file: Optional[Path] = None
    success: bool = False
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def __str__(self):
        if self.success:
            return f"Successfully generated Verilog code: {self.output_file}"
        return f"Failed to generate Verilog code for {self.netlist_file}: {self.error}"


class GenerateManager:
    """Drive load -> expand -> emit for a batch of netlist files"""

    def __init__(self, config: GeneratorConfig, bus_library: BusLibrary, module_library: ModuleLibrary,
                 dump_expanded: bool = False):
        self.config = config
        self.bus_library = bus_library
        self.module_library = module_library
        self.dump_expanded = dump_expanded

        self.expander = BusExpander(bus_library, module_library, config.pad_prefix)
        self.generator = VerilogGenerator(module_library, config.output_dir, config.pad_prefix,
                                          config.connect_ports)

    def _dump(self, netlist, output_name: str) -> Path:
        dump_file = Path(self.config.output_dir) / (output_name + NETLIST_DUMP_SUFFIX)
        try:
            dump_file.parent.mkdir(parents=True, exist_ok=True)
            dump_file.write_text(dump_netlist(netlist), encoding='utf-8')
        except OSError as e:
            raise OutputError(f"Failed to write expanded netlist {dump_file}: {e}")
        logger.info(f"Expanded netlist written to {dump_file}")
        return dump_file

    def generate_file(self, netlist_file: Union[Path, str]) -> GenerationResult:
        """Generate Verilog for one netlist file; fatal errors end up in the result"""
        netlist_file = Path(netlist_file)
        result = GenerationResult(netlist_file=netlist_file)
        output_name = output_name_for(netlist_file)

        try:
            raw = load_netlist(netlist_file)
            expanded = self.expander.expand(raw)
            result.warnings.extend(self.expander.warnings)
            if self.dump_expanded:
                self._dump(expanded, output_name)
            self.generator.generate(expanded, output_name)
            result.warnings.extend(self.generator.warnings)
        except (SocGenError, OSError) as e:
            # FileNotFoundError is an OSError
            result.error = str(e)
            logger.error(str(result))
            return result

        result.output_file = Path(self.config.output_dir) / f"{output_name}.v"
        result.success = True
        logger.info(str(result))
        return result

    def generate_verilog(self, netlist_files: Sequence[Union[Path, str]]) -> List[GenerationResult]:
        """Process every file in order; one failure does not stop the batch"""
        results = [self.generate_file(netlist_file) for netlist_file in netlist_files]
        failed = sum(1 for result in results if not result.success)
        if failed:
            logger.error(f"{failed} of {len(results)} netlist file(s) failed")
        return results
