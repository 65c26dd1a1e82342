"""
iamauth.api.routers

Router modules: health, login, role administration and dev token minting.
"""

# Package marker.
