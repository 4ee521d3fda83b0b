#!/usr/bin/env python


"""
ASGI FS-DAV Server
"""

__version__ = "0.3.0"

__author__ = "Rex Zhang"
__author_email__ = "rex.zhang@gmail.com"
__licence__ = "MIT"

__description__ = "An asynchronous WebDAV server, serving one local directory tree."
__project_url__ = "https://github.com/rexzhang/asgi-fsdav"
