"""
oauthgate - Google OAuth2 login for services running behind proxies.
"""
__version__ = "1.0.0"
