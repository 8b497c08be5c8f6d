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

import abc
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from socgen.errors import LibraryError, RecordError
from socgen.models import BusDefinition, ModuleInterface

logger = logging.getLogger(__name__)

BUS_SUFFIX = '.soc_bus'
MODULE_SUFFIX = '.soc_sym'

_REGEX_TOKENS = ('*', '+', '?', '|', '[', ']', '(', ')', '{', '}', '^', '$', '\\', '.')


def is_name_regex(text: str) -> bool:
    """Heuristic: does the text use regular expression syntax"""
    return any(token in text for token in _REGEX_TOKENS)


def is_name_exact_match(name: str, pattern: str) -> bool:
    """
    Match a library or entry name against a user pattern

    A plain name must match exactly; a pattern with regex syntax must match the whole name.
    """
    if not pattern or not pattern.strip():
        return False
    if not is_name_regex(pattern):
        return name == pattern
    try:
        return re.fullmatch(pattern, name) is not None
    except re.error as e:
        raise ValueError(f'Invalid name pattern {pattern!r}: {e}')


# ---------------------------------------------------------------------------
# Lookup interfaces used by the expansion engine and the emitter
# ---------------------------------------------------------------------------

class BusLibrary(abc.ABC):
    """Name-indexed catalog of bus types"""

    @abc.abstractmethod
    def get_bus(self, name: str) -> Optional[BusDefinition]:
        pass

    def bus_exists(self, name: str) -> bool:
        return self.get_bus(name) is not None


class ModuleLibrary(abc.ABC):
    """Name-indexed catalog of module interfaces"""

    @abc.abstractmethod
    def get_module(self, name: str) -> Optional[ModuleInterface]:
        pass

    def module_exists(self, name: str) -> bool:
        return self.get_module(name) is not None


# ---------------------------------------------------------------------------
# YAML-backed catalogs
# ---------------------------------------------------------------------------

class _Catalog(abc.ABC):
    """Entries loaded from '<library><suffix>' YAML files, keyed by entry name"""

    suffix = ''
    kind = 'entry'

    def __init__(self):
        self.entries: Dict[str, Any] = {}
        self.library_map: Dict[str, List[str]] = {}

    def __contains__(self, name: str) -> bool:
        return name in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    @abc.abstractmethod
    def _parse(self, name: str, record: Any, library: Optional[str]):
        pass

    def add(self, entry) -> None:
        self.entries[entry.name] = entry
        if entry.library is not None:
            names = self.library_map.setdefault(entry.library, [])
            if entry.name not in names:
                names.append(entry.name)

    def load_document(self, document: Any, library: Optional[str] = None) -> List[str]:
        """
        Add every entry of a parsed library document

        Args:
            document: Mapping of entry name -> entry record
            library: Library the entries came from

        Returns:
            Names of the entries added
        """
        if document is None:
            return []
        if not isinstance(document, dict):
            raise LibraryError(f'{self.kind} library {library} is not a map')
        added = []
        for name, record in document.items():
            try:
                entry = self._parse(str(name), record, library)
            except RecordError as e:
                logger.warning(f'Skipping {self.kind} in library {library}: {e}')
                continue
            self.add(entry)
            added.append(entry.name)
        return added

    def load_file(self, path: Union[Path, str]) -> List[str]:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f'Library file not found: {path}')
        library = path.name[:-len(self.suffix)] if path.name.endswith(self.suffix) else path.stem
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise LibraryError(f'Error parsing YAML file {path}: {e}')
        except OSError as e:
            raise LibraryError(f'Unable to open file {path}: {e}')
        names = self.load_document(document, library)
        logger.debug(f'Loaded {len(names)} {self.kind}(s) from {path}')
        return names

    def list_libraries(self, directory: Union[Path, str], pattern: str = '.*') -> List[str]:
        """Basenames of library files in directory whose name matches pattern, sorted by name"""
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f'Library directory not found: {directory}')
        files = sorted(
            (p for p in directory.iterdir() if p.is_file() and p.name.endswith(self.suffix)),
            key=lambda p: p.name.lower(),
        )
        basenames = [p.name[:-len(self.suffix)] for p in files]
        return [name for name in basenames if is_name_exact_match(name, pattern)]

    def load_directory(self, directory: Union[Path, str], pattern: str = '.*') -> List[str]:
        """Load every library in directory matching pattern, returns the library names"""
        libraries = self.list_libraries(directory, pattern)
        for library in libraries:
            self.load_file(Path(directory) / (library + self.suffix))
        logger.info(f'Loaded {len(self.entries)} {self.kind}(s) from {len(libraries)} library file(s)')
        return libraries

    def names(self, pattern: str = '.*') -> List[str]:
        return [name for name in self.entries if is_name_exact_match(name, pattern)]


class BusCatalog(_Catalog, BusLibrary):
    """Bus types loaded from .soc_bus files"""

    suffix = BUS_SUFFIX
    kind = 'bus'

    def _parse(self, name, record, library):
        return BusDefinition.from_record(name, record, library)

    def get_bus(self, name: str) -> Optional[BusDefinition]:
        return self.entries.get(name)

    def list_buses(self, pattern: str = '.*') -> List[str]:
        return self.names(pattern)


class ModuleCatalog(_Catalog, ModuleLibrary):
    """Module interfaces loaded from .soc_sym files"""

    suffix = MODULE_SUFFIX
    kind = 'module'

    def _parse(self, name, record, library):
        return ModuleInterface.from_record(name, record, library)

    def get_module(self, name: str) -> Optional[ModuleInterface]:
        return self.entries.get(name)

    def list_modules(self, pattern: str = '.*') -> List[str]:
        return self.names(pattern)
