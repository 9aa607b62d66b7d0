"""
vendor_build — build orchestrator for the vendored native dependencies.

Stages a private copy of ``third_party/``, checks that the vendored
checkouts are present, runs the autotools chain for libunwind and
gperftools, and prints the link directives the outer build consumes.

Profile: linux-autotools-static-pic
"""

__version__ = "0.1.0"
PACKAGE_NAME = "vendor_build"
BUILDER_VERSION = "v0"
SCHEMA_VERSION = "0.1"
PROFILE_ID = "linux-autotools-static-pic"
