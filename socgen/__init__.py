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

SoC netlist generator package

Expands abstract bus connections of a netlist into signal-level nets and
emits the Verilog top module that instantiates its blocks.

Modules:
    models:      Netlist and library data model
    library:     Bus and module library lookups and YAML catalogs
    netlist:     Netlist document loading and dumping
    expand:      Bus expansion engine
    verilog:     Verilog top module emitter
    rtl_writer:  Indenting Verilog text writer
    config:      Project configuration
    pipeline:    Per-file load, expand and emit driver
"""

__version__ = '0.1.0'

from .errors import (
    SocGenError,
    NetlistFormatError,
    PreconditionError,
    OutputError,
    LibraryError,
    RecordError
)

from .models import (
    Endpoint,
    Net,
    Instance,
    BusDefinition,
    ModuleInterface,
    RawNetlist,
    ExpandedNetlist
)

from .library import BusLibrary, ModuleLibrary, BusCatalog, ModuleCatalog
from .netlist import load_netlist, parse_netlist, dump_netlist
from .expand import BusExpander, expand
from .verilog import VerilogGenerator, generate
from .config import GeneratorConfig, ProjectConfigParser
from .pipeline import GenerateManager, GenerationResult

__all__ = [
    # Errors
    'SocGenError',
    'NetlistFormatError',
    'PreconditionError',
    'OutputError',
    'LibraryError',
    'RecordError',

    # Data model
    'Endpoint',
    'Net',
    'Instance',
    'BusDefinition',
    'ModuleInterface',
    'RawNetlist',
    'ExpandedNetlist',

    # Libraries
    'BusLibrary',
    'ModuleLibrary',
    'BusCatalog',
    'ModuleCatalog',

    # Pipeline
    'load_netlist',
    'parse_netlist',
    'dump_netlist',
    'BusExpander',
    'expand',
    'VerilogGenerator',
    'generate',
    'GeneratorConfig',
    'ProjectConfigParser',
    'GenerateManager',
    'GenerationResult',
]
