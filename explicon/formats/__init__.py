"""Document front ends.

This package hands document text to an existing parser (PyYAML, json)
and binds the parsed tree onto dataclasses of sourced values.
"""

from .json_document import dump_json, load_json
from .yaml_document import dump_yaml, load_yaml

__all__ = [
    "load_yaml",
    "dump_yaml",
    "load_json",
    "dump_json",
]
