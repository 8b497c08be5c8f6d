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

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from socgen.config import GeneratorConfig, ProjectConfigParser, find_project_file
from socgen.errors import SocGenError
from socgen.library import BusCatalog, ModuleCatalog
from socgen.pipeline import GenerateManager

logger = logging.getLogger('socgen')

# --level value -> logging level
LOG_LEVELS = {
    0: logging.CRITICAL + 10,  # silent
    1: logging.ERROR,
    2: logging.WARNING,
    3: logging.INFO,
    4: logging.DEBUG,
    5: logging.NOTSET + 1,  # verbose
}


def setup_logging(level: int):
    logging.basicConfig(format='%(levelname)s: %(message)s')
    logging.getLogger().setLevel(LOG_LEVELS[level])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='socgen',
        description='Expand bus connections of SoC netlists and generate Verilog',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Generate top modules for two netlists of the project in the current directory
  socgen generate verilog top.soc_net periph.soc_net

  # Explicit project, bind instance ports and keep the expanded netlist
  socgen generate verilog -d work -p demo --connect-ports --dump-netlist top.soc_net
        """
    )
    parser.add_argument('-l', '--level', type=int, choices=sorted(LOG_LEVELS), default=3,
                        help='Log level: 0 silent, 1 error, 2 warning, 3 info, 4 debug, 5 verbose (default: 3)')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    generate_parser = subparsers.add_parser('generate', help='Generate RTL from netlists')
    generate_subparsers = generate_parser.add_subparsers(dest='target', help='Generation target')

    verilog_parser = generate_subparsers.add_parser('verilog', help='Generate Verilog top modules')
    verilog_parser.add_argument('files', nargs='+', help='Netlist files to be processed')
    verilog_parser.add_argument('-d', '--directory', help='Project directory (default: current directory)')
    verilog_parser.add_argument('-p', '--project', help='Project name')
    verilog_parser.add_argument('-o', '--output', help='Output directory, overrides the project')
    verilog_parser.add_argument('--bus-dir', help='Bus library directory, overrides the project')
    verilog_parser.add_argument('--module-dir', help='Module library directory, overrides the project')
    verilog_parser.add_argument('--pad-prefix', help="Pad port name prefix (default: 'pad_')")
    verilog_parser.add_argument('--connect-ports', action='store_true', default=None,
                                help='Bind instance ports to nets instead of a placeholder comment')
    verilog_parser.add_argument('--dump-netlist', action='store_true',
                                help='Also write the expanded netlist next to the Verilog file')
    verilog_parser.add_argument('--level', dest='sub_level', type=int, choices=sorted(LOG_LEVELS),
                                help=argparse.SUPPRESS)

    return parser


def load_config(args: argparse.Namespace) -> GeneratorConfig:
    """Project file values, overridden by command line options"""
    project_dir = Path(args.directory) if args.directory else Path.cwd()
    if not project_dir.is_dir():
        raise FileNotFoundError(f"Project directory not found: {project_dir}")

    try:
        project_file = find_project_file(project_dir, args.project)
        config = ProjectConfigParser(project_file).get_config()
    except FileNotFoundError:
        if args.project:
            raise
        logger.debug(f"No project file in {project_dir}, using default layout")
        config = GeneratorConfig(project_dir=project_dir)

    if args.bus_dir:
        config.bus_dir = Path(args.bus_dir)
    if args.module_dir:
        config.module_dir = Path(args.module_dir)
    if args.output:
        config.output_dir = Path(args.output)
    if args.pad_prefix is not None:
        config.pad_prefix = args.pad_prefix
    if args.connect_ports is not None:
        config.connect_ports = args.connect_ports
    return config


def generate_verilog(args: argparse.Namespace) -> int:
    try:
        config = load_config(args)
        logger.debug(str(config))

        module_library = ModuleCatalog()
        module_library.load_directory(config.module_dir)
        bus_library = BusCatalog()
        bus_library.load_directory(config.bus_dir)
    except (SocGenError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    manager = GenerateManager(config, bus_library, module_library, dump_expanded=args.dump_netlist)
    results = manager.generate_verilog(args.files)
    return 0 if all(result.success for result in results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = args.level
    if getattr(args, 'sub_level', None) is not None:
        level = args.sub_level
    setup_logging(level)

    if args.command != 'generate' or not getattr(args, 'target', None):
        parser.print_help()
        return 1

    if args.target == 'verilog':
        return generate_verilog(args)
    return 1


if __name__ == '__main__':
    sys.exit(main())
