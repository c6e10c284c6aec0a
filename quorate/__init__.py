"""Core mechanisms for planning timed WA delegate hits on NationStates.
See https://www.nationstates.net/pages/api.html for NS API details.
"""

from quorate.core import *
from quorate.exceptions import *
from quorate.parser import *
from quorate.models import *
from quorate.api import *
from quorate.resources import *
from quorate.targets import *
from quorate.triggers import *
from quorate.report import *
from quorate.config import *
