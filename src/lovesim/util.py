""" Utility methods broadly applicable across the codebase. """

import re
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

def fullname(o:Any) -> str:
    # from https://stackoverflow.com/a/2020083/553580
    # Python makes no guarantees as to whether the __module__ special
    # attribute is defined, so we take a more circumspect approach.

    if isinstance(o, type):
        klass = o
    else:
        klass = o.__class__

    module = klass.__module__
    if module is None or module == str.__class__.__module__:
        return klass.__qualname__  # Avoid reporting __builtin__
    else:
        return module + '.' + klass.__qualname__

RE_CAMEL_TO_SNAKE_PHASE_1 = re.compile(r'(.)([A-Z][a-z]+)')
RE_CAMEL_TO_SNAKE_PHASE_2 = re.compile(r'([a-z0-9])([A-Z])')
def camel_to_snake(name: str) -> str:
    name = RE_CAMEL_TO_SNAKE_PHASE_1.sub(r'\1_\2', name)
    return RE_CAMEL_TO_SNAKE_PHASE_2.sub(r'\1_\2', name).lower()

def clip(x:int, min_x:int, max_x:int) -> int:
    return min(max_x, max(min_x, x))

def is_blank(s:Optional[str]) -> bool:
    """ True for None and the empty string, the "unset" identifier. """
    return s is None or s == ""
