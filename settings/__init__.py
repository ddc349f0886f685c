# ruff: noqa

from .base import *


if ENVIRONMENT == "local":
    from .local import *
if ENVIRONMENT == "test":
    from .test import *
