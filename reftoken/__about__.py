
"""
WARNING: Do not modify this file.
"""

__all__ = [
    "__title__", "__summary__", "__version__", "__author__", "__email__", "__license__", "__copyright__", "__url__"
]

__title__ = "reftoken"

__url__ = "https://github.com/reftoken/reftoken"

__summary__ = "An ephemeral-chain harness for deploying and exercising a reference ERC20 token."

__version__ = "0.3.0"

__author__ = "Reftoken Developers"

__email__ = "dev@reftoken.invalid"

__license__ = "GNU Affero General Public License, Version 3"

__copyright__ = 'Copyright (C) 2024 Reftoken Developers'
