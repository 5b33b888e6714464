############################################################
#
# requestbooth - Live Event Song Request Service
#
# __init__.py: Root package initialization and version definition
#
############################################################

"""RequestBooth - Live Event Song Request Service."""

__version__ = "1.2.0"
