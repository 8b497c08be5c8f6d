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


class SocGenError(RuntimeError):
    """Base class for all fatal socgen errors"""


class NetlistFormatError(SocGenError):
    """Netlist document does not have the required top-level shape"""


class PreconditionError(SocGenError):
    """Emission invoked on a netlist that has not been expanded"""


class OutputError(SocGenError):
    """Generated file cannot be written"""


class LibraryError(SocGenError):
    """Bus or module library file cannot be read"""


class RecordError(SocGenError):
    """A single malformed record; callers log it and skip the item"""
