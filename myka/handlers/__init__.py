# Importing the package registers every handler on the shared router from start.py.

from . import start  # creates router
from . import notifications  # reminder action buttons
