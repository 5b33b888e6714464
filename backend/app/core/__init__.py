############################################################
#
# requestbooth - Live Event Song Request Service
#
# __init__.py: Core request, ban and access logic package
#
############################################################

"""Core domain services for RequestBooth."""
