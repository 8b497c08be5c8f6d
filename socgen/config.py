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

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

PROJECT_SUFFIX = '.soc_pro'
DEFAULT_PAD_PREFIX = 'pad_'


@dataclass
class GeneratorConfig:
    """Paths and options for one generation run"""
    project_name: str = 'socgen'
    project_dir: Path = field(default_factory=Path.cwd)
    bus_dir: Optional[Path] = None
    module_dir: Optional[Path] = None
    output_dir: Optional[Path] = None

    # naming convention of chip-boundary ports, see port_name_candidates
    pad_prefix: str = DEFAULT_PAD_PREFIX

    # bind instance ports to nets instead of emitting a placeholder
    connect_ports: bool = False

    project_file: Optional[Path] = None

    def __post_init__(self):
        self.project_dir = Path(self.project_dir)
        if self.bus_dir is None:
            self.bus_dir = self.project_dir / 'bus'
        if self.module_dir is None:
            self.module_dir = self.project_dir / 'module'
        if self.output_dir is None:
            self.output_dir = self.project_dir / 'output'
        self.bus_dir = Path(self.bus_dir)
        self.module_dir = Path(self.module_dir)
        self.output_dir = Path(self.output_dir)

    def __str__(self):
        return (f"Project {self.project_name}: bus={self.bus_dir} module={self.module_dir} "
                f"output={self.output_dir} pad_prefix='{self.pad_prefix}'")


def find_project_file(project_dir: Union[Path, str], project_name: Optional[str] = None) -> Path:
    """
    Locate the project file in project_dir

    Args:
        project_dir: Directory holding '<name>.soc_pro' files
        project_name: Project to pick; required when several projects exist

    Returns:
        Path of the project file
    """
    project_dir = Path(project_dir)
    if project_name:
        project_file = project_dir / (project_name + PROJECT_SUFFIX)
        if not project_file.exists():
            raise FileNotFoundError(f"Project file not found: {project_file}")
        return project_file

    candidates: List[Path] = sorted(project_dir.glob('*' + PROJECT_SUFFIX), key=lambda p: p.name.lower())
    if not candidates:
        raise FileNotFoundError(f"No project file found in {project_dir}")
    if len(candidates) > 1:
        names = '\n'.join(p.stem for p in candidates)
        raise ValueError(f"Multiple projects found, please specify the project name.\n"
                         f"Available projects are:\n{names}")
    return candidates[0]


class ProjectConfigParser:
    """Parse a .soc_pro project file into a GeneratorConfig"""

    def __init__(self, project_file: Union[Path, str]):
        self.project_file = Path(project_file)
        if not self.project_file.exists():
            raise FileNotFoundError(f"Project file not found: {project_file}")

        self.values: Dict[str, Any] = {}
        self._parse()
        self.config = self._build_config()

    def _parse(self):
        with open(self.project_file, 'r', encoding='utf-8') as f:
            try:
                document = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid project file {self.project_file}: {e}")
        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise ValueError(f"Invalid project file {self.project_file}: expected a map")
        self.values = document

    def _get_path(self, key: str) -> Optional[Path]:
        value = self.values.get(key)
        if value is None:
            return None
        path = Path(str(value)).expanduser()
        if not path.is_absolute():
            path = self.project_file.parent / path
        return path

    def _get_bool(self, key: str, default: bool = False) -> bool:
        value = self.values.get(key, default)
        if isinstance(value, str):
            return value.strip().lower() in ('1', 'true', 'yes', 'on')
        return bool(value)

    def _build_config(self) -> GeneratorConfig:
        pad_prefix = self.values.get('pad_prefix', DEFAULT_PAD_PREFIX)
        return GeneratorConfig(
            project_name=self.project_file.name[:-len(PROJECT_SUFFIX)]
            if self.project_file.name.endswith(PROJECT_SUFFIX) else self.project_file.stem,
            project_dir=self.project_file.parent,
            bus_dir=self._get_path('bus'),
            module_dir=self._get_path('module') or self._get_path('symbol'),
            output_dir=self._get_path('output'),
            pad_prefix='' if pad_prefix is None else str(pad_prefix),
            connect_ports=self._get_bool('connect_ports'),
            project_file=self.project_file,
        )

    def get_config(self) -> GeneratorConfig:
        """Get parsed configuration"""
        return self.config
