"""oplogout.
~~~~~~~~

End-session (logout) result handling for OpenID Connect providers.
"""

__version__ = "0.1.0"
