# ruff: noqa

from .base import *
from .apps import *
from .database import *
from .drf import *
from .internationalization import *
from .kpi import *
from .logging import *
