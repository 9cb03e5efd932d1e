"""Navigator Vault Meta information.
   Navigator Vault is a local, password-protected store for string secrets.
"""
__title__ = 'navigator_vault'
__description__ = (
   'Navigator Vault is a local, password-protected store '
   'for string secrets with session-scoped access.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-vault'
