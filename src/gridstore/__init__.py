"""
gridstore - Chunked Binary Object Storage

Stores arbitrarily large byte streams as fixed-size chunk documents in a
document collection, with one file document per stored object, and
reassembles them on read with strict sequencing and size validation.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"
