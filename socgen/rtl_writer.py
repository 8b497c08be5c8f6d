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
from typing import List, Optional, Sequence, Tuple, Union

from socgen.errors import OutputError

logger = logging.getLogger(__name__)

TOOL_NAME = 'socgen'


class RTLWriter:
    """Verilog text accumulator with automatic indentation"""

    def __init__(self, output_file: Optional[Union[Path, str]] = None, indent_width: int = 4):
        self.output_file = Path(output_file) if output_file is not None else None
        self.lines: List[str] = []
        self.indent_level = 0
        self.indent_width = indent_width

    @property
    def _indent(self) -> str:
        return ' ' * (self.indent_width * self.indent_level)

    def write_header(self, description: str = 'Generated RTL Verilog file'):
        """Write file header; carries no timestamp so output is reproducible"""
        self.lines.append(f"// Generated by {TOOL_NAME} - {description}")
        self.lines.append("// Auto-generated file, do not edit manually")
        self.lines.append("")

    def write_blank(self, count: int = 1):
        """Write blank lines"""
        self.lines.extend([''] * count)

    def write_comment(self, text: str):
        """Write comment with proper indentation"""
        self.lines.append(f"{self._indent}// {text}")

    def write_line(self, code: str):
        """Write indented code line"""
        self.lines.append(f"{self._indent}{code}")

    def write_list(self, items: Sequence[str]):
        """Write comma separated items, one per line"""
        for i, item in enumerate(items):
            comma = '' if i == len(items) - 1 else ','
            self.write_line(f"{item}{comma}")

    def indent(self):
        """Increase indentation level"""
        self.indent_level += 1

    def dedent(self):
        """Decrease indentation level"""
        self.indent_level = max(0, self.indent_level - 1)

    def begin_module(self, name: str, ports: Optional[Sequence[str]] = None):
        """
        Begin module declaration

        Args:
            name: Module name
            ports: Port declarations like 'input wire clk'; may be empty
        """
        self.write_line(f"module {name} (")
        self.indent()
        self.write_list(list(ports or []))

    def end_ports(self):
        """End port list"""
        self.dedent()
        self.write_line(");")
        self.write_blank()

    def end_module(self):
        """End module"""
        self.write_line("endmodule")

    def begin_instance(self, module_name: str, instance_name: str,
                       parameters: Optional[Sequence[Tuple[str, str]]] = None):
        """
        Begin module instantiation

        Args:
            module_name: Instantiated module
            instance_name: Instance label
            parameters: (name, value) overrides; the #( ) block is omitted when empty
        """
        if parameters:
            self.write_line(f"{module_name} #(")
            self.indent()
            self.write_list([f".{name}({value})" for name, value in parameters])
            self.dedent()
            self.write_line(f") {instance_name} (")
        else:
            self.write_line(f"{module_name} {instance_name} (")
        self.indent()

    def write_connections(self, connections: Sequence[Tuple[str, str]]):
        """Write named port connections '.port(signal)'"""
        self.write_list([f".{port}({signal})" for port, signal in connections])

    def end_instance(self):
        """End module instantiation"""
        self.dedent()
        self.write_line(");")
        self.write_blank()

    def write_wire(self, name: str, data_type: Optional[str] = None):
        """Write wire declaration, 'wire <type> <name>;' or 'wire <name>;' when untyped"""
        type_str = f"{data_type} " if data_type else ""
        self.write_line(f"wire {type_str}{name};")

    def get_content(self) -> str:
        """Get generated content as string"""
        return '\n'.join(self.lines) + '\n'

    def save(self, output_file: Optional[Union[Path, str]] = None) -> Path:
        """Write to file"""
        if output_file is not None:
            self.output_file = Path(output_file)
        if self.output_file is None:
            raise OutputError("No output file given")
        try:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_file, 'w', encoding='utf-8', newline='\n') as f:
                f.write(self.get_content())
        except OSError as e:
            raise OutputError(f"Failed to open output file for writing: {self.output_file}: {e}")

        logger.info(f"Generated: {self.output_file} ({len(self.lines)} lines)")
        return self.output_file
