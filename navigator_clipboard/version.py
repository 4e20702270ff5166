"""Navigator Clipboard Meta information.
   Navigator Clipboard copies (optionally encrypted) content between devices
   through a short-lived relay.
"""
__title__ = 'navigator_clipboard'
__description__ = (
   'Navigator Clipboard copies encrypted content between devices '
   'through an ephemeral relay.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-clipboard'
