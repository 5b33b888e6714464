############################################################
#
# requestbooth - Live Event Song Request Service
#
# __init__.py: Application package initialization
#
############################################################

"""RequestBooth Application Package."""

from backend import __version__

__all__ = ["__version__"]
