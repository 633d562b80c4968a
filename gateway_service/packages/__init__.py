"""In-process schema packages.

Every sub-package exposing a module-level ``PACKAGE`` is composed into the
local tier at startup, in name order.
"""
