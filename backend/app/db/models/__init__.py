from .common import *  # noqa
from .inventory import *  # noqa
from .inventory_exec import *  # noqa
from .sales import *  # noqa
from .purchasing import *  # noqa
from .mrp import *  # noqa
